"""
Énumérations du modèle financier.

Les discriminants sont persistés tels quels : une nouvelle valeur s'ajoute
en fin d'énumération, les valeurs existantes ne sont jamais renumérotées.
"""
from enum import IntEnum


class FinancialDomain(IntEnum):
    """Finances personnelles ou professionnelles."""

    PERSONAL = 0
    BUSINESS = 1


class BillFrequency(IntEnum):
    WEEKLY = 0
    BI_WEEKLY = 1
    MONTHLY = 2
    QUARTERLY = 3
    ANNUALLY = 4


class IncomeFrequency(IntEnum):
    WEEKLY = 0
    BI_WEEKLY = 1
    SEMI_MONTHLY = 2
    MONTHLY = 3
    IRREGULAR = 4


class GoalFundingStrategy(IntEnum):
    """Stratégie d'alimentation d'un objectif d'épargne."""

    FIXED_AMOUNT = 0  # montant fixe par période
    PERCENT_OF_INCOME = 1  # pourcentage des revenus de la période
    SURPLUS = 2  # excédent après factures et minimums


class AlertType(IntEnum):
    CASH_SHORTFALL = 0
    BILL_RISK = 1
    INCOME_DELAYED = 2
    GOAL_RISK = 3
    LOW_BALANCE = 4


class AlertSeverity(IntEnum):
    INFO = 0
    WARNING = 1
    CRITICAL = 2


class AlertState(IntEnum):
    NEW = 0
    ACKNOWLEDGED = 1
    SNOOZED = 2
    RESOLVED = 3


class StatusIndicator(IntEnum):
    """Santé projetée de la trésorerie."""

    GREEN = 0
    YELLOW = 1
    RED = 2
