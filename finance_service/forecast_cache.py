"""
Cache des instantanés de prévision.

Clé : (user_id, domain, horizon_days). Plusieurs instantanés coexistent par
clé ; le plus récent dont la fenêtre couvre l'instant courant fait autorité.
Un instantané périmé n'est jamais servi sans être signalé comme tel.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import select

from config_service.logging import get_logger
from db_service.models import FinancialDomain, ForecastSnapshot, StatusIndicator
from db_service.types import as_utc
from finance_service.exceptions import StaleSnapshotError
from finance_service.repository import Clock, FinanceRepository, as_uuid


logger = get_logger(__name__)


@dataclass(frozen=True)
class SnapshotKey:
    user_id: uuid.UUID
    domain: FinancialDomain
    horizon_days: int

    def __post_init__(self):
        object.__setattr__(self, "user_id", as_uuid(self.user_id))
        object.__setattr__(self, "domain", FinancialDomain(self.domain))
        horizon = int(self.horizon_days)
        if horizon <= 0:
            raise ValueError("horizon_days must be greater than 0")
        object.__setattr__(self, "horizon_days", horizon)


@dataclass(frozen=True)
class CachedForecast:
    snapshot: ForecastSnapshot
    is_stale: bool

    @property
    def payload(self) -> Any:
        return json.loads(self.snapshot.forecast_data)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not serializable")


def serialize_forecast_payload(payload: Any) -> str:
    """Sérialisation JSON canonique : mêmes entrées, mêmes octets."""
    if isinstance(payload, str):
        return payload
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


def payload_digest(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class ForecastSnapshotCache:
    """Store and look up cached forecast results."""

    def __init__(self, repository: FinanceRepository, clock: Optional[Clock] = None):
        self.repository = repository
        self._clock = clock or repository.now

    def store(
        self,
        key: SnapshotKey,
        start_date: datetime,
        end_date: datetime,
        payload: Any,
        status: StatusIndicator,
        runway_days: Optional[int] = None,
        generated_at: Optional[datetime] = None,
    ) -> ForecastSnapshot:
        start_date = as_utc(start_date)
        end_date = as_utc(end_date)
        if start_date is None or end_date is None:
            raise ValueError("start_date and end_date are required")
        if end_date < start_date:
            raise ValueError("end_date must not be earlier than start_date")
        if runway_days is not None and runway_days < 0:
            raise ValueError("runway_days must be greater than or equal to 0")

        data = serialize_forecast_payload(payload)
        snapshot = self.repository.create(
            ForecastSnapshot,
            user_id=key.user_id,
            domain=key.domain,
            horizon_days=key.horizon_days,
            generated_at=as_utc(generated_at) if generated_at else self._clock(),
            start_date=start_date,
            end_date=end_date,
            forecast_data=data,
            runway_days=runway_days,
            status=StatusIndicator(status),
        )
        logger.info(
            "forecast_snapshot_stored",
            snapshot_id=str(snapshot.id),
            user_id=str(key.user_id),
            domain=key.domain.name,
            horizon_days=key.horizon_days,
            digest=payload_digest(data),
        )
        return snapshot

    def history(self, key: SnapshotKey) -> List[ForecastSnapshot]:
        """Instantanés de la clé, du plus récent au plus ancien."""
        stmt = (
            select(ForecastSnapshot)
            .where(
                ForecastSnapshot.user_id == key.user_id,
                ForecastSnapshot.domain == key.domain,
                ForecastSnapshot.horizon_days == key.horizon_days,
            )
            .order_by(ForecastSnapshot.generated_at.desc(), ForecastSnapshot.created_at.desc())
        )
        return list(self.repository.session.execute(stmt).scalars())

    def lookup(self, key: SnapshotKey, require_fresh: bool = False) -> Optional[CachedForecast]:
        snapshots = self.history(key)
        if not snapshots:
            return None

        now = as_utc(self._clock())
        for snapshot in snapshots:
            if snapshot.start_date <= now <= snapshot.end_date:
                return CachedForecast(snapshot, False)

        newest = snapshots[0]
        if require_fresh:
            raise StaleSnapshotError(newest.id, newest.start_date, newest.end_date, now)
        logger.info("forecast_snapshot_stale", snapshot_id=str(newest.id))
        return CachedForecast(newest, True)

    def prune(self, key: SnapshotKey, keep: int = 1) -> int:
        """Supprime les instantanés au-delà des ``keep`` plus récents."""
        if keep < 0:
            raise ValueError("keep must be greater than or equal to 0")
        with self.repository.transaction():
            obsolete = self.history(key)[keep:]
            for snapshot in obsolete:
                self.repository.session.delete(snapshot)
            self.repository.flush()
        if obsolete:
            logger.info("forecast_snapshots_pruned", count=len(obsolete), horizon_days=key.horizon_days)
        return len(obsolete)
