from sqlalchemy import Column, ForeignKey, Index, Integer, Text, Uuid

from db_service.base import Base, TimestampMixin
from db_service.models.enums import FinancialDomain, StatusIndicator
from db_service.types import IntEnumType, UTCDateTime


class ForecastSnapshot(Base, TimestampMixin):
    """
    Résultat de prévision mis en cache.

    Clé logique (user_id, domain, horizon_days) ; plusieurs instantanés par clé
    coexistent, le plus récent (generated_at) fait autorité.
    """

    __tablename__ = "forecast_snapshots"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    domain = Column(IntEnumType(FinancialDomain), nullable=False)
    horizon_days = Column(Integer, nullable=False)
    generated_at = Column(UTCDateTime, nullable=False)

    # Fenêtre couverte par la prévision
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=False)

    forecast_data = Column(Text, nullable=False)  # charge utile sérialisée, opaque
    runway_days = Column(Integer, nullable=True)  # NULL : pas de découvert projeté
    status = Column(IntEnumType(StatusIndicator), nullable=False)


Index(
    "ix_forecast_snapshots_lookup",
    ForecastSnapshot.user_id,
    ForecastSnapshot.domain,
    ForecastSnapshot.horizon_days,
    ForecastSnapshot.generated_at.desc(),
)
