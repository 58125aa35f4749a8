"""
Noyau financier : dépôt transactionnel, cycle de vie des alertes, financement
des objectifs, cache des prévisions et seed de développement.
"""
from finance_service.exceptions import (
    FinanceCoreError,
    ForeignKeyViolationError,
    InvalidGoalConfigurationError,
    InvalidStateTransitionError,
    NotFoundError,
    RequiredFieldMissingError,
    StaleSnapshotError,
    TransactionAbortedError,
    UniquenessViolationError,
)
from finance_service.repository import FinanceRepository

__all__ = [
    "FinanceCoreError",
    "FinanceRepository",
    "ForeignKeyViolationError",
    "InvalidGoalConfigurationError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "RequiredFieldMissingError",
    "StaleSnapshotError",
    "TransactionAbortedError",
    "UniquenessViolationError",
]
