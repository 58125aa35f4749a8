# db_service/models/__init__.py
"""
Import tous les modèles pour qu'ils soient disponibles via db_service.models
et enregistrés dans ``Base.metadata``.
"""

from db_service.models.enums import (
    FinancialDomain,
    BillFrequency,
    IncomeFrequency,
    GoalFundingStrategy,
    AlertType,
    AlertSeverity,
    AlertState,
    StatusIndicator,
)

# Modèles utilisateur
from db_service.models.user import User, Setting

# Comptes et grand livre
from db_service.models.account import Account, Transaction

# Flux récurrents
from db_service.models.recurring import Bill, IncomeStream

# Objectifs d'épargne
from db_service.models.goal import Goal, GoalAccount

# Alertes et prévisions
from db_service.models.alert import Alert
from db_service.models.forecast import ForecastSnapshot

__all__ = [
    # Énumérations
    'FinancialDomain', 'BillFrequency', 'IncomeFrequency', 'GoalFundingStrategy',
    'AlertType', 'AlertSeverity', 'AlertState', 'StatusIndicator',

    # Entités
    'User', 'Setting', 'Account', 'Transaction', 'Bill', 'IncomeStream',
    'Goal', 'GoalAccount', 'Alert', 'ForecastSnapshot',
]
