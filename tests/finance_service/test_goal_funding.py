import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from db_service.models import FinancialDomain, Goal, GoalAccount, GoalFundingStrategy
from finance_service.exceptions import InvalidGoalConfigurationError, NotFoundError
from finance_service.goal_funding import (
    GoalFundingResolver,
    PeriodIncomeContext,
    compute_contribution,
)


@pytest.fixture
def resolver(repo):
    return GoalFundingResolver(repo)


@pytest.fixture
def make_goal(repo, user, clock):
    def _make(strategy=GoalFundingStrategy.FIXED_AMOUNT, **fields):
        values = dict(
            user_id=user.id,
            name="Goal",
            target_amount=Decimal("1000"),
            current_amount=Decimal("0"),
            target_date=clock() + timedelta(days=365),
            domain=FinancialDomain.PERSONAL,
            funding_strategy=strategy,
        )
        if strategy is GoalFundingStrategy.FIXED_AMOUNT:
            values["fixed_contribution_amount"] = Decimal("100")
        elif strategy is GoalFundingStrategy.PERCENT_OF_INCOME:
            values["percent_of_income"] = Decimal("10")
        values.update(fields)
        return repo.create(Goal, **values)

    return _make


def _context(income="0", available="0", claims="0"):
    return PeriodIncomeContext(Decimal(income), Decimal(available), Decimal(claims))


def test_fixed_contribution_clamped_to_remaining_gap(resolver, make_goal):
    goal = make_goal(
        target_amount=Decimal("20000"),
        current_amount=Decimal("19800"),
        fixed_contribution_amount=Decimal("500"),
    )

    result = resolver.resolve(goal.id, _context())

    assert result.requested == Decimal("500.00")
    assert result.contribution == Decimal("200.00")
    assert result.remainder == Decimal("300.00")


def test_fixed_contribution_below_gap(resolver, make_goal):
    result = resolver.resolve(make_goal().id, _context())
    assert result.contribution == Decimal("100.00")
    assert result.remainder == Decimal("0.00")


def test_percent_of_income(resolver, make_goal):
    goal = make_goal(GoalFundingStrategy.PERCENT_OF_INCOME, percent_of_income=Decimal("12.5"))

    result = resolver.resolve(goal.id, _context(income="6000"))

    assert result.requested == Decimal("750.00")
    assert result.contribution == Decimal("750.00")


def test_percent_rounds_half_up(make_goal):
    goal = make_goal(GoalFundingStrategy.PERCENT_OF_INCOME, percent_of_income=Decimal("10"))
    result = compute_contribution(goal, _context(income="0.05"))
    # 0.005 arrondi au centime supérieur
    assert result.requested == Decimal("0.01")


def test_surplus_uses_available_minus_claims(resolver, make_goal):
    goal = make_goal(GoalFundingStrategy.SURPLUS)

    assert resolver.resolve(goal.id, _context(available="700", claims="250")).contribution == Decimal("450.00")
    starved = resolver.resolve(goal.id, _context(available="100", claims="250"))
    assert starved.requested == Decimal("0.00")
    assert starved.contribution == Decimal("0.00")


def test_completed_goal_gets_nothing(resolver, make_goal):
    goal = make_goal(target_amount=Decimal("500"), current_amount=Decimal("500"))
    result = resolver.resolve(goal.id, _context())
    assert result.contribution == Decimal("0.00")
    assert result.remainder == Decimal("100.00")


def test_inactive_goal_contributes_nothing(resolver, make_goal):
    goal = make_goal(is_active=False)
    result = resolver.resolve(goal.id, _context(income="1000", available="1000"))
    assert (result.requested, result.contribution, result.remainder) == (
        Decimal("0.00"),
        Decimal("0.00"),
        Decimal("0.00"),
    )


def test_misconfigured_goal_is_rejected(make_goal):
    goal = make_goal()
    goal.fixed_contribution_amount = None
    with pytest.raises(InvalidGoalConfigurationError) as exc:
        compute_contribution(goal, _context())
    assert exc.value.field == "fixed_contribution_amount"


def test_unknown_goal(resolver):
    with pytest.raises(NotFoundError):
        resolver.resolve(uuid.uuid4(), _context())


def test_context_rejects_negative_values():
    with pytest.raises(ValueError):
        _context(income="-1")
    with pytest.raises(ValueError):
        _context(available="-0.01")
    with pytest.raises(ValueError):
        _context(claims="-5")


def test_plan_orders_surplus_last_and_accumulates_claims(repo, clock, resolver, make_goal, make_account):
    savings = make_account("Savings")
    surplus = make_goal(GoalFundingStrategy.SURPLUS, name="Vacation", priority=1)
    fixed_low = make_goal(name="Laptop", priority=3, fixed_contribution_amount=Decimal("300"))
    clock.advance(seconds=1)
    fixed_high = make_goal(name="Emergency", priority=1, fixed_contribution_amount=Decimal("500"))
    percent = make_goal(
        GoalFundingStrategy.PERCENT_OF_INCOME, name="Invest", priority=3, percent_of_income=Decimal("5")
    )
    make_goal(name="Paused", is_active=False)
    for goal in repo.list(Goal):
        repo.create(GoalAccount, goal_id=goal.id, account_id=savings.id)

    plan = resolver.plan_for_account(savings.id, _context(income="2000", available="1500"))

    assert [r.goal_id for r in plan] == [fixed_high.id, fixed_low.id, percent.id, surplus.id]
    assert [r.contribution for r in plan] == [
        Decimal("500.00"),
        Decimal("300.00"),
        Decimal("100.00"),
        Decimal("600.00"),
    ]


def test_plan_for_unknown_account(resolver):
    with pytest.raises(NotFoundError):
        resolver.plan_for_account(uuid.uuid4(), _context())


def test_plan_ignores_goals_of_other_accounts(repo, resolver, make_goal, make_account):
    checking = make_account("Checking")
    savings = make_account("Savings")
    goal = make_goal()
    repo.create(GoalAccount, goal_id=goal.id, account_id=savings.id)

    assert resolver.plan_for_account(checking.id, _context()) == []
    assert len(resolver.plan_for_account(savings.id, _context())) == 1


def test_apply_contribution_never_overshoots(repo, resolver, make_goal):
    goal = make_goal(target_amount=Decimal("1000"), current_amount=Decimal("800"))

    result = resolver.apply_contribution(goal.id, Decimal("500"))

    assert result.contribution == Decimal("200.00")
    assert result.remainder == Decimal("300.00")
    assert repo.get(Goal, goal.id).current_amount == Decimal("1000.00")

    again = resolver.apply_contribution(goal.id, Decimal("50"))
    assert again.contribution == Decimal("0.00")
    assert repo.get(Goal, goal.id).current_amount == Decimal("1000.00")


def test_apply_contribution_accumulates(repo, resolver, make_goal):
    goal = make_goal()
    resolver.apply_contribution(goal.id, "100.10")
    resolver.apply_contribution(goal.id, Decimal("49.90"))
    assert repo.get(Goal, goal.id).current_amount == Decimal("150.00")


def test_apply_contribution_validation(resolver, make_goal):
    goal = make_goal()
    with pytest.raises(ValueError):
        resolver.apply_contribution(goal.id, Decimal("-1"))
    with pytest.raises(NotFoundError):
        resolver.apply_contribution(uuid.uuid4(), Decimal("10"))


def test_apply_contribution_to_inactive_goal(repo, resolver, make_goal):
    goal = make_goal(is_active=False)
    result = resolver.apply_contribution(goal.id, Decimal("10"))
    assert result.contribution == Decimal("0.00")
    assert result.remainder == Decimal("10.00")
    assert repo.get(Goal, goal.id).current_amount == Decimal("0.00")
