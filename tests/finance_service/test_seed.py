from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from db_service.init_db import init_database
from db_service.models import (
    Account,
    Bill,
    FinancialDomain,
    Goal,
    GoalAccount,
    IncomeStream,
    Setting,
    Transaction,
    User,
)
from finance_service.repository import FinanceRepository
from finance_service.seed import (
    DEFAULT_SETTINGS,
    first_of_next_month,
    is_seeded,
    next_due_date,
    next_semi_monthly_payday,
    seed_database,
)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def seeded(session, clock):
    assert seed_database(session, clock=clock, email="seed@example.com")
    return FinanceRepository(session, clock=clock)


def test_seed_populates_empty_database(seeded):
    assert seeded.count(User) == 1
    assert seeded.count(Account) == 5
    assert seeded.count(Account, domain=FinancialDomain.PERSONAL) == 3
    assert seeded.count(Account, domain=FinancialDomain.BUSINESS) == 2
    assert seeded.count(Bill) == 6
    assert seeded.count(Bill, domain=FinancialDomain.PERSONAL) == 4
    assert seeded.count(Bill, domain=FinancialDomain.BUSINESS) == 2
    assert seeded.count(IncomeStream) == 2
    assert seeded.count(Goal) == 3
    assert seeded.count(GoalAccount) == 3
    assert seeded.count(Transaction) >= 9
    assert seeded.count(Setting) == len(DEFAULT_SETTINGS) == 5


def test_seed_is_idempotent(session, seeded, clock):
    assert is_seeded(session)
    assert seed_database(session, clock=clock) is False
    assert seeded.count(User) == 1
    assert seeded.count(Account) == 5


def test_seed_skipped_when_any_user_exists(session, user, clock, repo):
    assert seed_database(session, clock=clock) is False
    assert repo.count(Account) == 0


def test_seed_user_and_balances(seeded):
    user = seeded.get_user_by_email("seed@example.com")
    assert user.time_zone == "America/New_York"

    balances = {a.name: a.current_balance for a in seeded.list(Account)}
    assert balances["Personal Checking"] == Decimal("5000.00")
    assert balances["Business Savings"] == Decimal("50000.00")
    assert balances["Credit Card"] == Decimal("-2500.00")
    assert seeded.get_setting_value(user.id, "DashboardRefreshTime") == "08:00"


def test_seed_dates_follow_clock(seeded, clock):
    bills = {b.name: b for b in seeded.list(Bill)}
    assert bills["Rent"].next_due_date == _utc(2025, 4, 1)
    assert bills["Electric Bill"].next_due_date == _utc(2025, 3, 15)
    assert bills["Internet"].next_due_date == _utc(2025, 4, 10)

    salary = seeded.list(IncomeStream, name="Salary")[0]
    assert salary.next_expected_date == _utc(2025, 3, 15)
    assert salary.next_expected_window_start == _utc(2025, 3, 13)
    assert salary.next_expected_window_end == _utc(2025, 3, 17)

    for txn in seeded.list(Transaction):
        assert clock() - timedelta(days=30) <= txn.date <= clock()


def test_seed_links_goals_to_savings(seeded):
    savings = seeded.list(Account, name="Personal Savings")[0]
    linked = {link.goal_id for link in seeded.list_goal_accounts(account_id=savings.id)}
    names = {seeded.get(Goal, goal_id).name for goal_id in linked}
    assert names == {"Emergency Fund", "Vacation Fund"}


@pytest.mark.parametrize(
    "day, now, expected",
    [
        (15, _utc(2025, 3, 10, 12), _utc(2025, 3, 15)),
        (10, _utc(2025, 3, 10, 12), _utc(2025, 4, 10)),
        (31, _utc(2025, 2, 10), _utc(2025, 2, 28)),
        (31, _utc(2025, 1, 31, 12), _utc(2025, 2, 28)),
        (29, _utc(2024, 2, 1), _utc(2024, 2, 29)),
        (5, _utc(2025, 12, 20), _utc(2026, 1, 5)),
    ],
)
def test_next_due_date(day, now, expected):
    assert next_due_date(day, now) == expected


@pytest.mark.parametrize(
    "now, expected",
    [
        (_utc(2025, 3, 10), _utc(2025, 3, 15)),
        (_utc(2025, 3, 15), _utc(2025, 3, 31)),
        (_utc(2025, 2, 27), _utc(2025, 2, 28)),
        (_utc(2025, 2, 28), _utc(2025, 3, 15)),
        (_utc(2025, 12, 31), _utc(2026, 1, 15)),
    ],
)
def test_next_semi_monthly_payday(now, expected):
    assert next_semi_monthly_payday(now) == expected


def test_first_of_next_month():
    assert first_of_next_month(_utc(2025, 3, 10, 12)) == _utc(2025, 4, 1)
    assert first_of_next_month(_utc(2025, 12, 31, 23, 59)) == _utc(2026, 1, 1)


def test_init_database_creates_schema_and_seeds_once(engine):
    assert init_database(engine, seed=True) is True
    assert init_database(engine, seed=True) is False


def test_init_database_without_seed(engine, session):
    assert init_database(engine, seed=False) is False
    assert not is_seeded(session)
