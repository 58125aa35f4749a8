"""
Modèles des flux récurrents : factures à payer et sources de revenus attendues.
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid

from db_service.base import Base, TimestampMixin
from db_service.models.enums import BillFrequency, FinancialDomain, IncomeFrequency
from db_service.types import IntEnumType, Money, UTCDateTime


class Bill(Base, TimestampMixin):
    """Obligation financière récurrente."""

    __tablename__ = "bills"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    amount = Column(Money(), nullable=False)
    frequency = Column(IntEnumType(BillFrequency), nullable=False)

    # Ancrage de la récurrence
    day_of_month = Column(Integer, nullable=True)  # 1-31
    day_of_week = Column(Integer, nullable=True)  # 0-6
    next_due_date = Column(UTCDateTime, nullable=False, index=True)

    domain = Column(IntEnumType(FinancialDomain), nullable=False, index=True)
    # Le compte par défaut peut disparaître sans emporter la facture
    default_account_id = Column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    priority = Column(Integer, nullable=False, default=5)  # plus petit = plus urgent
    is_auto_pay = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    notes = Column(Text, nullable=True)


class IncomeStream(Base, TimestampMixin):
    """Source de revenus attendue, toujours rattachée à son compte de réception."""

    __tablename__ = "income_streams"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    typical_amount = Column(Money(), nullable=False)
    frequency = Column(IntEnumType(IncomeFrequency), nullable=False)
    domain = Column(IntEnumType(FinancialDomain), nullable=False, index=True)
    account_id = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Dernier versement reçu
    last_received_date = Column(UTCDateTime, nullable=True)
    last_received_amount = Column(Money(), nullable=True)

    # Prochain versement attendu et sa fenêtre
    next_expected_date = Column(UTCDateTime, nullable=True, index=True)
    next_expected_window_start = Column(UTCDateTime, nullable=True)
    next_expected_window_end = Column(UTCDateTime, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    notes = Column(Text, nullable=True)
