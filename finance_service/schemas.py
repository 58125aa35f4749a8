"""
Schémas pydantic des charges utiles validées reçues par le noyau.

Ils bornent les longueurs et la précision des montants avant tout accès à la
base ; l'unicité et les clés étrangères restent du ressort du moteur.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from db_service.models import (
    AlertSeverity,
    AlertType,
    BillFrequency,
    FinancialDomain,
    GoalFundingStrategy,
    IncomeFrequency,
)


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


def _check_time_zone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone: {v}")
    return v


# Utilisateurs et paramètres
class UserCreate(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    time_zone: str = Field("America/New_York", max_length=100)
    default_forecast_horizon_days: int = Field(30, gt=0)

    @field_validator("time_zone")
    @classmethod
    def known_time_zone(cls, v: str) -> str:
        return _check_time_zone(v)


class UserUpdate(BaseModel):
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    time_zone: Optional[str] = Field(None, max_length=100)
    default_forecast_horizon_days: Optional[int] = Field(None, gt=0)

    @field_validator("time_zone")
    @classmethod
    def known_time_zone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_time_zone(v)


class SettingCreate(BaseModel):
    user_id: UUID
    setting_key: str = Field(..., min_length=1, max_length=255)
    setting_value: str


# Comptes et transactions
class AccountCreate(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    institution: Optional[str] = Field(None, max_length=255)
    account_type: str = Field(..., min_length=1, max_length=100)
    domain: FinancialDomain
    current_balance: Decimal = Field(..., max_digits=18, decimal_places=2)
    safe_minimum_balance: Decimal = Field(Decimal("0"), max_digits=18, decimal_places=2)
    include_in_forecast: bool = True
    is_active: bool = True
    external_account_id: Optional[str] = Field(None, max_length=255)
    last_synced_at: Optional[datetime] = None


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    institution: Optional[str] = Field(None, max_length=255)
    account_type: Optional[str] = Field(None, min_length=1, max_length=100)
    current_balance: Optional[Decimal] = Field(None, max_digits=18, decimal_places=2)
    safe_minimum_balance: Optional[Decimal] = Field(None, max_digits=18, decimal_places=2)
    include_in_forecast: Optional[bool] = None
    is_active: Optional[bool] = None
    last_synced_at: Optional[datetime] = None


class TransactionCreate(BaseModel):
    account_id: UUID
    amount: Decimal = Field(..., max_digits=18, decimal_places=2)
    date: datetime
    description: str = Field(..., min_length=1, max_length=500)
    normalized_merchant: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    is_reconciled: bool = False
    bill_id: Optional[UUID] = None
    income_stream_id: Optional[UUID] = None
    goal_id: Optional[UUID] = None
    transfer_account_id: Optional[UUID] = None
    notes: Optional[str] = None
    external_transaction_id: Optional[str] = Field(None, max_length=255)


# Flux récurrents
class BillCreate(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., max_digits=18, decimal_places=2)
    frequency: BillFrequency
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    next_due_date: datetime
    domain: FinancialDomain
    default_account_id: Optional[UUID] = None
    priority: int = 5
    is_auto_pay: bool = False
    is_active: bool = True
    notes: Optional[str] = None


class IncomeStreamCreate(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    typical_amount: Decimal = Field(..., max_digits=18, decimal_places=2)
    frequency: IncomeFrequency
    domain: FinancialDomain
    account_id: UUID
    last_received_date: Optional[datetime] = None
    last_received_amount: Optional[Decimal] = Field(None, max_digits=18, decimal_places=2)
    next_expected_date: Optional[datetime] = None
    next_expected_window_start: Optional[datetime] = None
    next_expected_window_end: Optional[datetime] = None
    is_active: bool = True
    notes: Optional[str] = None

    @model_validator(mode="after")
    def window_is_ordered(self):
        start, end = self.next_expected_window_start, self.next_expected_window_end
        if start and end and end < start:
            raise ValueError("next_expected_window_end must not precede next_expected_window_start")
        return self


# Objectifs
class GoalCreate(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    current_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    target_date: datetime
    domain: FinancialDomain
    funding_strategy: GoalFundingStrategy
    fixed_contribution_amount: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    percent_of_income: Optional[Decimal] = Field(None, gt=0, le=100, max_digits=5, decimal_places=2)
    priority: int = 5
    is_active: bool = True
    notes: Optional[str] = None

    @model_validator(mode="after")
    def strategy_is_configured(self):
        if (
            self.funding_strategy == GoalFundingStrategy.FIXED_AMOUNT
            and self.fixed_contribution_amount is None
        ):
            raise ValueError("fixed_contribution_amount is required for FIXED_AMOUNT")
        if (
            self.funding_strategy == GoalFundingStrategy.PERCENT_OF_INCOME
            and self.percent_of_income is None
        ):
            raise ValueError("percent_of_income is required for PERCENT_OF_INCOME")
        return self


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    target_amount: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    target_date: Optional[datetime] = None
    funding_strategy: Optional[GoalFundingStrategy] = None
    fixed_contribution_amount: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    percent_of_income: Optional[Decimal] = Field(None, gt=0, le=100, max_digits=5, decimal_places=2)
    priority: Optional[int] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class GoalAccountCreate(BaseModel):
    goal_id: UUID
    account_id: UUID


# Alertes
class AlertCreate(BaseModel):
    user_id: UUID
    type: AlertType
    severity: AlertSeverity
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    recommended_action: Optional[str] = None
    domain: Optional[FinancialDomain] = None
    related_account_id: Optional[UUID] = None
    related_bill_id: Optional[UUID] = None
    related_goal_id: Optional[UUID] = None
    related_income_stream_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None

