"""
Exceptions personnalisées du noyau financier.

Toutes sont des échecs de validation déterministes : elles sont remontées
de façon synchrone à l'appelant avec l'entité et le champ fautifs, et ne sont
jamais rejouées par cette couche.
"""

from typing import Any, Dict, Optional, Sequence


class FinanceCoreError(Exception):
    """Exception de base du noyau financier."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        entity: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "FINANCE_CORE_ERROR"
        self.entity = entity
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Code: {self.error_code}, Details: {self.details})"
        return f"{self.message} (Code: {self.error_code})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "entity": self.entity,
            "details": self.details,
        }


class NotFoundError(FinanceCoreError):
    """L'identifiant référencé n'existe pas."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} '{entity_id}' not found",
            error_code="NOT_FOUND",
            entity=entity,
            details={"entity_id": str(entity_id)},
        )
        self.entity_id = entity_id


class UniquenessViolationError(FinanceCoreError):
    """Email, couple (utilisateur, clé) ou couple (objectif, compte) déjà présent."""

    def __init__(
        self,
        entity: str,
        fields: Sequence[str],
        constraint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.fields = tuple(fields)
        super().__init__(
            message=f"{entity} violates uniqueness on ({', '.join(self.fields) or 'unknown'})",
            error_code="UNIQUENESS_VIOLATION",
            entity=entity,
            details={**(details or {}), "fields": list(self.fields), "constraint": constraint},
        )


class ForeignKeyViolationError(FinanceCoreError):
    """Référence vers un parent inexistant."""

    def __init__(
        self,
        entity: str,
        field: Optional[str] = None,
        referenced_id: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        self.referenced_id = referenced_id
        super().__init__(
            message=f"{entity}.{field or '?'} references a missing parent",
            error_code="FOREIGN_KEY_VIOLATION",
            entity=entity,
            details={
                **(details or {}),
                "field": field,
                "referenced_id": str(referenced_id) if referenced_id is not None else None,
            },
        )


class RequiredFieldMissingError(FinanceCoreError):
    """Champ obligatoire absent (NULL)."""

    def __init__(self, entity: str, field: Optional[str]):
        self.field = field
        super().__init__(
            message=f"{entity}.{field or '?'} is required",
            error_code="REQUIRED_FIELD_MISSING",
            entity=entity,
            details={"field": field},
        )


class TransactionAbortedError(FinanceCoreError):
    """Un bloc imbriqué a été annulé : la transaction englobante ne peut plus committer."""

    def __init__(self):
        super().__init__(
            message="Transaction aborted after a rejected nested write; nothing was committed",
            error_code="TRANSACTION_ABORTED",
        )


class InvalidStateTransitionError(FinanceCoreError):
    """Transition d'alerte interdite par le cycle de vie."""

    def __init__(self, alert_id: Any, from_state: Any, to_state: Any, reason: str):
        self.alert_id = alert_id
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        super().__init__(
            message=f"Alert '{alert_id}' cannot move from {_name(from_state)} to {_name(to_state)}: {reason}",
            error_code="INVALID_STATE_TRANSITION",
            entity="Alert",
            details={
                "alert_id": str(alert_id),
                "from_state": _name(from_state),
                "to_state": _name(to_state),
                "reason": reason,
            },
        )


class InvalidGoalConfigurationError(FinanceCoreError):
    """Champ requis par la stratégie de financement absent ou hors bornes."""

    def __init__(self, goal_id: Any, field: str, reason: str):
        self.goal_id = goal_id
        self.field = field
        self.reason = reason
        super().__init__(
            message=f"Goal '{goal_id}' has an invalid funding configuration: {reason}",
            error_code="INVALID_GOAL_CONFIGURATION",
            entity="Goal",
            details={"goal_id": str(goal_id) if goal_id is not None else None, "field": field},
        )


class StaleSnapshotError(FinanceCoreError):
    """La fenêtre couverte par l'instantané ne contient plus l'instant courant."""

    def __init__(self, snapshot_id: Any, start_date: Any, end_date: Any, now: Any):
        self.snapshot_id = snapshot_id
        super().__init__(
            message=f"ForecastSnapshot '{snapshot_id}' is stale",
            error_code="STALE_SNAPSHOT",
            entity="ForecastSnapshot",
            details={
                "snapshot_id": str(snapshot_id),
                "start_date": str(start_date),
                "end_date": str(end_date),
                "now": str(now),
            },
        )


def _name(state: Any) -> str:
    return getattr(state, "name", str(state))
