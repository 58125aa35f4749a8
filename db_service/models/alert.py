from sqlalchemy import Column, ForeignKey, Index, String, Text, Uuid

from db_service.base import Base, TimestampMixin
from db_service.models.enums import AlertSeverity, AlertState, AlertType, FinancialDomain
from db_service.types import IntEnumType, UTCDateTime


class Alert(Base, TimestampMixin):
    """
    Alerte générée par le système (découvert prévisionnel, facture à risque...).

    Les liens vers les entités concernées sont remis à NULL quand la cible est
    supprimée ; l'alerte elle-même ne disparaît qu'avec son utilisateur.
    """

    __tablename__ = "alerts"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(IntEnumType(AlertType), nullable=False, index=True)
    severity = Column(IntEnumType(AlertSeverity), nullable=False, index=True)
    state = Column(IntEnumType(AlertState), nullable=False, default=AlertState.NEW, index=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    recommended_action = Column(Text, nullable=True)
    domain = Column(IntEnumType(FinancialDomain), nullable=True)

    related_account_id = Column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    related_bill_id = Column(
        Uuid, ForeignKey("bills.id", ondelete="SET NULL"), nullable=True, index=True
    )
    related_goal_id = Column(
        Uuid, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    related_income_stream_id = Column(
        Uuid, ForeignKey("income_streams.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Cycle de vie
    triggered_at = Column(UTCDateTime, nullable=False)
    acknowledged_at = Column(UTCDateTime, nullable=True)
    snoozed_until = Column(UTCDateTime, nullable=True)
    resolved_at = Column(UTCDateTime, nullable=True)
    expires_at = Column(UTCDateTime, nullable=True)


Index("ix_alerts_triggered_at", Alert.triggered_at.desc())
