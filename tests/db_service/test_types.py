from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import text

from db_service.models import Account, FinancialDomain, Goal, GoalFundingStrategy
from db_service.types import Money, Percent, as_utc


def test_money_round_trip_keeps_every_digit(repo, session, make_account):
    account = make_account(current_balance=Decimal("1234567890123456.78"))
    session.expire_all()

    reloaded = repo.get(Account, account.id)
    assert reloaded.current_balance == Decimal("1234567890123456.78")
    assert str(reloaded.current_balance) == "1234567890123456.78"


def test_money_is_quantised_half_up(repo, session, make_account):
    account = make_account(current_balance=Decimal("10.005"), safe_minimum_balance=3)
    session.expire_all()

    reloaded = repo.get(Account, account.id)
    assert reloaded.current_balance == Decimal("10.01")
    assert reloaded.safe_minimum_balance == Decimal("3.00")


def test_negative_balances_are_preserved(repo, session, make_account):
    account = make_account(current_balance=Decimal("-2500"))
    session.expire_all()
    assert repo.get(Account, account.id).current_balance == Decimal("-2500.00")


def test_quantize_rejects_out_of_range_values():
    with pytest.raises(ValueError):
        Money().quantize(Decimal("10000000000000000"))
    with pytest.raises(ValueError):
        Money().quantize("not a number")
    with pytest.raises(ValueError):
        Percent().quantize(Decimal("1000"))
    assert Money().quantize(Decimal("9999999999999999.99")) == Decimal("9999999999999999.99")
    assert Percent().quantize("12.345") == Decimal("12.35")


def test_percent_column_round_trip(repo, session, user, clock):
    goal = repo.create(
        Goal,
        user_id=user.id,
        name="Boat",
        target_amount=Decimal("1000"),
        target_date=clock() + timedelta(days=200),
        domain=FinancialDomain.PERSONAL,
        funding_strategy=GoalFundingStrategy.PERCENT_OF_INCOME,
        percent_of_income=Decimal("12.5"),
    )
    session.expire_all()
    assert repo.get(Goal, goal.id).percent_of_income == Decimal("12.50")


def test_datetimes_are_read_back_as_aware_utc(repo, session, make_account):
    paris = timezone(timedelta(hours=2))
    account = make_account(last_synced_at=datetime(2025, 6, 1, 14, 30, tzinfo=paris))
    session.expire_all()

    synced = repo.get(Account, account.id).last_synced_at
    assert synced.tzinfo is not None
    assert synced == datetime(2025, 6, 1, 12, 30, tzinfo=timezone.utc)
    assert synced.utcoffset() == timedelta(0)


def test_naive_datetimes_are_assumed_utc():
    naive = datetime(2025, 1, 1, 8, 0)
    assert as_utc(naive) == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert as_utc(None) is None


def test_enums_are_stored_by_discriminant(session, make_account):
    account = make_account(domain=FinancialDomain.BUSINESS)
    stored = session.execute(
        text("SELECT domain FROM accounts WHERE id = :id"), {"id": account.id.hex}
    ).scalar()
    assert stored == 1
