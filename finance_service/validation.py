"""Entity-level validation rules applied before a write reaches storage."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from db_service.models import Alert, AlertState, Goal, GoalFundingStrategy
from finance_service.exceptions import (
    InvalidGoalConfigurationError,
    InvalidStateTransitionError,
)


def as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid decimal value: {value!r}") from exc


def validate_goal_configuration(goal: Goal) -> None:
    """Reject a goal whose funding strategy lacks its required parameter.

    FIXED_AMOUNT needs a non-negative ``fixed_contribution_amount``;
    PERCENT_OF_INCOME needs ``percent_of_income`` in (0, 100]. A missing value
    is never defaulted to zero.
    """
    strategy = goal.funding_strategy
    if strategy is None:
        return
    strategy = GoalFundingStrategy(strategy)

    if strategy is GoalFundingStrategy.FIXED_AMOUNT:
        amount = as_decimal(goal.fixed_contribution_amount)
        if amount is None:
            raise InvalidGoalConfigurationError(
                goal.id, "fixed_contribution_amount", "required for FIXED_AMOUNT strategy"
            )
        if amount < 0:
            raise InvalidGoalConfigurationError(
                goal.id, "fixed_contribution_amount", "must be greater than or equal to 0"
            )

    elif strategy is GoalFundingStrategy.PERCENT_OF_INCOME:
        percent = as_decimal(goal.percent_of_income)
        if percent is None:
            raise InvalidGoalConfigurationError(
                goal.id, "percent_of_income", "required for PERCENT_OF_INCOME strategy"
            )
        if percent <= 0 or percent > 100:
            raise InvalidGoalConfigurationError(
                goal.id, "percent_of_income", "must be in the range (0, 100]"
            )


def validate_new_alert(alert: Alert) -> None:
    """Alerts always start their life in the NEW state."""
    if alert.state is not None and AlertState(alert.state) is not AlertState.NEW:
        raise InvalidStateTransitionError(
            alert.id, alert.state, AlertState.NEW, "alerts must be created in the NEW state"
        )
