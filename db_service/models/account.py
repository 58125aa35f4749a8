"""
Modèles SQLAlchemy pour les comptes et leurs transactions.

Une transaction est un enregistrement durable du grand livre : elle disparaît
avec son compte propriétaire, mais jamais parce qu'un lien de catégorisation
(facture, revenu, objectif, compte de virement) est supprimé.
"""
from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text, Uuid

from db_service.base import Base, TimestampMixin
from db_service.models.enums import FinancialDomain
from db_service.types import IntEnumType, Money, UTCDateTime


class Account(Base, TimestampMixin):
    """Compte financier (courant, épargne, carte de crédit...)."""

    __tablename__ = "accounts"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    institution = Column(String(255), nullable=True)
    account_type = Column(String(100), nullable=False)
    domain = Column(IntEnumType(FinancialDomain), nullable=False, index=True)

    # Montants decimal(18,2)
    current_balance = Column(Money(), nullable=False, default=0)
    safe_minimum_balance = Column(Money(), nullable=False, default=0)

    include_in_forecast = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Synchronisation externe
    external_account_id = Column(String(255), nullable=True)
    last_synced_at = Column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name}, domain={self.domain})>"


class Transaction(Base, TimestampMixin):
    """Opération individuelle sur un compte (montant signé)."""

    __tablename__ = "transactions"

    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Money(), nullable=False)
    date = Column(UTCDateTime, nullable=False)
    description = Column(String(500), nullable=False)
    normalized_merchant = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    is_reconciled = Column(Boolean, nullable=False, default=False)

    # Liens de catégorisation : remis à NULL si la cible est supprimée
    bill_id = Column(Uuid, ForeignKey("bills.id", ondelete="SET NULL"), nullable=True, index=True)
    income_stream_id = Column(
        Uuid, ForeignKey("income_streams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    goal_id = Column(Uuid, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)
    transfer_account_id = Column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )

    notes = Column(Text, nullable=True)
    external_transaction_id = Column(String(255), nullable=True)


# Historique d'un compte, du plus récent au plus ancien
Index("ix_transactions_account_id_date", Transaction.account_id, Transaction.date.desc())
