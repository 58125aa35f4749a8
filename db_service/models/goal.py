"""
Modèles des objectifs d'épargne et de leurs comptes sources.
"""
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, Uuid

from db_service.base import Base, TimestampMixin
from db_service.models.enums import FinancialDomain, GoalFundingStrategy
from db_service.types import IntEnumType, Money, Percent, UTCDateTime


class Goal(Base, TimestampMixin):
    """
    Objectif d'épargne ou achat planifié.

    ``fixed_contribution_amount`` n'a de sens que pour la stratégie FIXED_AMOUNT,
    ``percent_of_income`` que pour PERCENT_OF_INCOME.
    """

    __tablename__ = "goals"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    target_amount = Column(Money(), nullable=False)
    current_amount = Column(Money(), nullable=False, default=0)
    target_date = Column(UTCDateTime, nullable=False, index=True)
    domain = Column(IntEnumType(FinancialDomain), nullable=False, index=True)

    funding_strategy = Column(IntEnumType(GoalFundingStrategy), nullable=False)
    fixed_contribution_amount = Column(Money(), nullable=True)
    percent_of_income = Column(Percent(), nullable=True)  # decimal(5,2)

    priority = Column(Integer, nullable=False, default=5)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    notes = Column(Text, nullable=True)


class GoalAccount(Base, TimestampMixin):
    """Table de jointure objectif <-> compte source."""

    __tablename__ = "goal_accounts"

    goal_id = Column(Uuid, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_goal_accounts_goal_id_account_id", "goal_id", "account_id", unique=True),
    )
