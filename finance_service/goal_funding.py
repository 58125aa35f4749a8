"""
Goal funding resolver.

Computes the contribution each savings goal expects for a period according
to its funding strategy, and applies completed contributions without ever
letting ``current_amount`` overshoot ``target_amount``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, List

from config_service.logging import get_logger
from db_service.models import Account, Goal, GoalFundingStrategy
from db_service.types import Money
from finance_service.repository import FinanceRepository
from finance_service.validation import as_decimal, validate_goal_configuration


logger = get_logger(__name__)

_MONEY = Money()
ZERO = Decimal("0.00")

__all__ = [
    "ContributionResult",
    "GoalFundingResolver",
    "PeriodIncomeContext",
    "compute_contribution",
    "validate_goal_configuration",
]


def _money(value: Any) -> Decimal:
    return _MONEY.quantize(as_decimal(value) if value is not None else ZERO)


@dataclass(frozen=True)
class PeriodIncomeContext:
    """Income figures supplied by the caller for one period."""

    income_for_period: Decimal
    available_balance: Decimal
    higher_priority_claims: Decimal = field(default=ZERO)

    def __post_init__(self):
        for name in ("income_for_period", "available_balance", "higher_priority_claims"):
            value = _money(getattr(self, name))
            if value < 0:
                raise ValueError(f"{name} must be greater than or equal to 0")
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class ContributionResult:
    goal_id: Any
    strategy: GoalFundingStrategy
    requested: Decimal
    contribution: Decimal
    remainder: Decimal


def _remaining_gap(goal: Goal) -> Decimal:
    gap = _money(goal.target_amount) - _money(goal.current_amount)
    return max(ZERO, gap)


def compute_contribution(goal: Goal, context: PeriodIncomeContext) -> ContributionResult:
    """
    Expected contribution of ``goal`` for the period described by ``context``.

    The requested amount is clamped to the remaining gap; whatever does not fit
    is reported as ``remainder`` for reallocation.
    """
    validate_goal_configuration(goal)
    strategy = GoalFundingStrategy(goal.funding_strategy)

    if not goal.is_active:
        return ContributionResult(goal.id, strategy, ZERO, ZERO, ZERO)

    if strategy is GoalFundingStrategy.FIXED_AMOUNT:
        requested = _money(goal.fixed_contribution_amount)
    elif strategy is GoalFundingStrategy.PERCENT_OF_INCOME:
        requested = _money(
            as_decimal(goal.percent_of_income) / Decimal(100) * context.income_for_period
        )
    else:
        requested = max(ZERO, context.available_balance - context.higher_priority_claims)

    contribution = min(requested, _remaining_gap(goal))
    return ContributionResult(
        goal_id=goal.id,
        strategy=strategy,
        requested=requested,
        contribution=contribution,
        remainder=requested - contribution,
    )


def _plan_order(goal: Goal):
    surplus = GoalFundingStrategy(goal.funding_strategy) is GoalFundingStrategy.SURPLUS
    return (surplus, goal.priority, goal.created_at, str(goal.id))


class GoalFundingResolver:
    """Resolve and apply goal contributions through the repository."""

    def __init__(self, repository: FinanceRepository):
        self.repository = repository

    def resolve(self, goal_id: Any, context: PeriodIncomeContext) -> ContributionResult:
        goal = self.repository.get(Goal, goal_id)
        return compute_contribution(goal, context)

    def plan_for_account(self, account_id: Any, context: PeriodIncomeContext) -> List[ContributionResult]:
        """
        Ordered contribution plan for the active goals funded by an account.

        Fixed and percent goals come first, surplus goals last; inside each
        group lower priority values go first, ties by creation time. Each
        surplus goal sees the contributions already planned as claims.
        """
        account = self.repository.get(Account, account_id)
        goals = [
            self.repository.get(Goal, link.goal_id)
            for link in self.repository.list_goal_accounts(account_id=account.id)
        ]
        goals = sorted((goal for goal in goals if goal.is_active), key=_plan_order)

        plan = []
        claims = context.higher_priority_claims
        for goal in goals:
            result = compute_contribution(goal, replace(context, higher_priority_claims=claims))
            plan.append(result)
            claims += result.contribution
        return plan

    def apply_contribution(self, goal_id: Any, amount: Any) -> ContributionResult:
        """Add a completed contribution to the goal, clamped to the remaining gap."""
        amount = _money(amount)
        if amount < 0:
            raise ValueError("Contribution amount must be greater than or equal to 0")

        with self.repository.transaction():
            goal = self.repository.get(Goal, goal_id, for_update=True)
            applied = min(amount, _remaining_gap(goal)) if goal.is_active else ZERO
            if applied > 0:
                goal.current_amount = _money(goal.current_amount) + applied
                self.repository.flush(goal)
            result = ContributionResult(
                goal_id=goal.id,
                strategy=GoalFundingStrategy(goal.funding_strategy),
                requested=amount,
                contribution=applied,
                remainder=amount - applied,
            )

        logger.info("goal_contribution_applied", goal_id=str(result.goal_id), clamped=result.remainder > 0)
        return result
