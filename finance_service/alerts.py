"""
Cycle de vie des alertes.

Machine à états appliquée alerte par alerte ; chaque transition (état et
horodatage associé) est écrite dans une seule transaction. L'expiration est un
filtre de lecture, jamais une mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy import select

from config_service.logging import get_logger
from db_service.models import Alert, AlertSeverity, AlertState, AlertType
from db_service.types import as_utc
from finance_service.exceptions import InvalidStateTransitionError
from finance_service.repository import Clock, FinanceRepository, as_uuid
from finance_service.schemas import AlertCreate


logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[AlertState, FrozenSet[AlertState]] = {
    AlertState.NEW: frozenset({AlertState.ACKNOWLEDGED, AlertState.SNOOZED, AlertState.RESOLVED}),
    AlertState.ACKNOWLEDGED: frozenset({AlertState.SNOOZED, AlertState.RESOLVED}),
    AlertState.SNOOZED: frozenset(
        {AlertState.ACKNOWLEDGED, AlertState.SNOOZED, AlertState.RESOLVED}
    ),
    AlertState.RESOLVED: frozenset(),
}

UNRESOLVED_STATES = (AlertState.NEW, AlertState.ACKNOWLEDGED, AlertState.SNOOZED)


@dataclass(frozen=True)
class TransitionResult:
    alert_id: Any
    previous_state: AlertState
    state: AlertState
    changed: bool


def is_expired(alert: Alert, now: datetime) -> bool:
    """Une alerte non résolue dont ``expires_at`` est dépassé est considérée expirée."""
    if alert.expires_at is None:
        return False
    if AlertState(alert.state) is AlertState.RESOLVED:
        return False
    return as_utc(alert.expires_at) <= as_utc(now)


class AlertLifecycle:
    """Applique les transitions autorisées aux alertes persistées."""

    def __init__(self, repository: FinanceRepository, clock: Optional[Clock] = None):
        self.repository = repository
        self._clock = clock or repository.now

    def raise_alert(
        self,
        user_id: Any,
        alert_type: AlertType,
        severity: AlertSeverity,
        title: str,
        message: str,
        **fields: Any,
    ) -> Alert:
        """Create a NEW alert triggered now."""
        fields.setdefault("triggered_at", self._clock())
        alert = self.repository.create(
            Alert,
            user_id=as_uuid(user_id),
            type=AlertType(alert_type),
            severity=AlertSeverity(severity),
            title=title,
            message=message,
            state=AlertState.NEW,
            **fields,
        )
        logger.info("alert_raised", alert_id=str(alert.id), alert_type=AlertType(alert_type).name)
        return alert

    def raise_from(self, payload: AlertCreate) -> Alert:
        """Create an alert from a validated payload."""
        data = payload.model_dump(exclude_unset=True)
        return self.raise_alert(
            data.pop("user_id"),
            data.pop("type"),
            data.pop("severity"),
            data.pop("title"),
            data.pop("message"),
            **data,
        )

    def transition(
        self,
        alert_id: Any,
        target_state: AlertState,
        timestamp: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Fait passer l'alerte dans ``target_state``.

        ``timestamp`` est l'échéance de mise en veille pour SNOOZED et doit être
        dans le futur ; il est ignoré pour les autres cibles. RESOLVED vers
        RESOLVED est un no-op.
        """
        target = AlertState(target_state)
        now = as_utc(self._clock())

        with self.repository.transaction():
            alert = self.repository.get(Alert, alert_id, for_update=True)
            previous = AlertState(alert.state)

            if target is AlertState.SNOOZED:
                until = as_utc(timestamp)
                if until is None:
                    raise InvalidStateTransitionError(
                        alert.id, previous, target, "snoozed_until is required"
                    )
                if until <= now:
                    raise InvalidStateTransitionError(
                        alert.id, previous, target, "snoozed_until must be in the future"
                    )

            if previous is AlertState.RESOLVED and target is AlertState.RESOLVED:
                return TransitionResult(alert.id, previous, previous, False)

            if target not in ALLOWED_TRANSITIONS[previous]:
                reason = (
                    "alert is resolved"
                    if previous is AlertState.RESOLVED
                    else "transition not allowed"
                )
                raise InvalidStateTransitionError(alert.id, previous, target, reason)

            alert.state = target
            if target is AlertState.ACKNOWLEDGED:
                alert.acknowledged_at = now
            elif target is AlertState.SNOOZED:
                alert.snoozed_until = as_utc(timestamp)
            elif target is AlertState.RESOLVED:
                alert.resolved_at = now
            self.repository.flush(alert)
            result = TransitionResult(alert.id, previous, target, True)

        logger.info(
            "alert_transition",
            alert_id=str(result.alert_id),
            from_state=previous.name,
            to_state=target.name,
        )
        return result

    def acknowledge(self, alert_id: Any) -> TransitionResult:
        return self.transition(alert_id, AlertState.ACKNOWLEDGED)

    def snooze(self, alert_id: Any, until: datetime) -> TransitionResult:
        return self.transition(alert_id, AlertState.SNOOZED, until)

    def resolve(self, alert_id: Any) -> TransitionResult:
        return self.transition(alert_id, AlertState.RESOLVED)

    def is_expired(self, alert: Alert, now: Optional[datetime] = None) -> bool:
        return is_expired(alert, now or self._clock())

    def list_active_alerts(self, user_id: Any, include_expired: bool = False) -> List[Alert]:
        """Alertes non résolues d'un utilisateur, les plus récentes d'abord."""
        stmt = (
            select(Alert)
            .where(Alert.user_id == as_uuid(user_id), Alert.state.in_(UNRESOLVED_STATES))
            .order_by(Alert.triggered_at.desc(), Alert.created_at.desc())
        )
        alerts = list(self.repository.session.execute(stmt).scalars())
        if include_expired:
            return alerts
        now = self._clock()
        return [alert for alert in alerts if not is_expired(alert, now)]
