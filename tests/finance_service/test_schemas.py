import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from db_service.models import FinancialDomain, GoalFundingStrategy, IncomeFrequency, User
from finance_service.schemas import (
    AccountCreate,
    GoalCreate,
    IncomeStreamCreate,
    UserCreate,
    UserUpdate,
)


NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_user_create_defaults():
    payload = UserCreate(email="dev@moneymatters.local", name="Dev")
    assert payload.time_zone == "America/New_York"
    assert payload.default_forecast_horizon_days == 30


@pytest.mark.parametrize("email", ["no-at-sign", "two@@example.com", "spa ce@example.com", ""])
def test_user_create_rejects_malformed_email(email):
    with pytest.raises(ValidationError):
        UserCreate(email=email, name="Bad")


def test_user_time_zone_must_exist():
    with pytest.raises(ValidationError):
        UserCreate(email="tz@example.com", name="Tz", time_zone="Mars/Olympus_Mons")
    assert UserUpdate(time_zone="Europe/Paris").time_zone == "Europe/Paris"
    assert UserUpdate(name="Only name").model_dump(exclude_unset=True) == {"name": "Only name"}


def test_account_amount_precision():
    base = dict(
        user_id=uuid.uuid4(),
        name="Checking",
        account_type="Checking",
        domain=FinancialDomain.PERSONAL,
    )
    assert AccountCreate(current_balance=Decimal("-2500.25"), **base).current_balance == Decimal("-2500.25")
    with pytest.raises(ValidationError):
        AccountCreate(current_balance=Decimal("1.001"), **base)


def test_goal_create_requires_strategy_parameter():
    base = dict(
        user_id=uuid.uuid4(),
        name="Goal",
        target_amount=Decimal("1000"),
        target_date=NOW,
        domain=FinancialDomain.PERSONAL,
    )
    with pytest.raises(ValidationError):
        GoalCreate(funding_strategy=GoalFundingStrategy.FIXED_AMOUNT, **base)
    with pytest.raises(ValidationError):
        GoalCreate(funding_strategy=GoalFundingStrategy.PERCENT_OF_INCOME, **base)
    with pytest.raises(ValidationError):
        GoalCreate(
            funding_strategy=GoalFundingStrategy.PERCENT_OF_INCOME,
            percent_of_income=Decimal("120"),
            **base,
        )
    assert GoalCreate(funding_strategy=GoalFundingStrategy.SURPLUS, **base).priority == 5


def test_income_window_must_be_ordered():
    base = dict(
        user_id=uuid.uuid4(),
        name="Salary",
        typical_amount=Decimal("6000"),
        frequency=IncomeFrequency.SEMI_MONTHLY,
        domain=FinancialDomain.PERSONAL,
        account_id=uuid.uuid4(),
    )
    with pytest.raises(ValidationError):
        IncomeStreamCreate(
            next_expected_window_start=NOW,
            next_expected_window_end=NOW - timedelta(days=1),
            **base,
        )
    ok = IncomeStreamCreate(
        next_expected_window_start=NOW - timedelta(days=2),
        next_expected_window_end=NOW + timedelta(days=2),
        **base,
    )
    assert ok.next_expected_window_end > ok.next_expected_window_start


def test_schema_payload_feeds_repository(repo):
    user = repo.create(User, UserCreate(email="schema@example.com", name="Schema"))
    repo.update(User, user.id, UserUpdate(time_zone="Europe/Paris"))
    reloaded = repo.get(User, user.id)
    assert reloaded.time_zone == "Europe/Paris"
    assert reloaded.name == "Schema"
