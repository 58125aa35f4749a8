"""
Jeu de données de développement.

Le seed n'est appliqué que sur une base vide (aucun utilisateur) et s'exécute
dans une seule transaction : un échec ne laisse aucune ligne derrière lui.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.orm import Session

from config_service.config import settings
from config_service.logging import get_logger
from db_service.base import utc_now
from db_service.models import (
    Account,
    Bill,
    BillFrequency,
    FinancialDomain,
    Goal,
    GoalAccount,
    GoalFundingStrategy,
    IncomeFrequency,
    IncomeStream,
    Setting,
    Transaction,
    User,
)
from db_service.types import as_utc
from finance_service.repository import Clock, FinanceRepository


logger = get_logger(__name__)

DEFAULT_SETTINGS = {
    "AlertThreshold.CashShortfall": "7",
    "AlertThreshold.BillRisk": "5",
    "AlertChannels.Email": "true",
    "AlertChannels.InApp": "true",
    "DashboardRefreshTime": "08:00",
}


def _midnight(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def _clamped_day(year: int, month: int, day: int) -> datetime:
    return _midnight(year, month, min(day, calendar.monthrange(year, month)[1]))


def next_due_date(day_of_month: int, now: datetime) -> datetime:
    """Prochaine échéance à minuit UTC, jour borné à la longueur du mois."""
    now = as_utc(now)
    due = _clamped_day(now.year, now.month, day_of_month)
    if due <= now:
        following = due + relativedelta(months=1)
        due = _clamped_day(following.year, following.month, day_of_month)
    return due


def first_of_next_month(now: datetime) -> datetime:
    now = as_utc(now)
    return _midnight(now.year, now.month, 1) + relativedelta(months=1)


def next_semi_monthly_payday(now: datetime) -> datetime:
    """Paie bimensuelle : le 15 ou le dernier jour du mois."""
    now = as_utc(now)
    last_day = calendar.monthrange(now.year, now.month)[1]
    if now.day < 15:
        return _midnight(now.year, now.month, 15)
    if now.day < last_day:
        return _midnight(now.year, now.month, last_day)
    following = now + relativedelta(months=1)
    return _midnight(following.year, following.month, 15)


def is_seeded(session: Session) -> bool:
    return session.execute(select(User.id).limit(1)).first() is not None


def seed_database(session: Session, clock: Clock = utc_now, email: Optional[str] = None) -> bool:
    """
    Peuple une base vide avec le jeu de données de développement.

    Returns:
        bool: True si les données ont été créées, False si un utilisateur
        existait déjà (aucune écriture).
    """
    if is_seeded(session):
        logger.info("seed_skipped", reason="users already present")
        return False

    repo = FinanceRepository(session, clock=clock)
    now = as_utc(clock())
    personal, business = FinancialDomain.PERSONAL, FinancialDomain.BUSINESS

    with repo.transaction():
        user = repo.add(
            User(
                email=email or settings.SEED_USER_EMAIL,
                name="Development User",
                time_zone="America/New_York",
                default_forecast_horizon_days=30,
            )
        )

        def account(name, institution, account_type, domain, balance, minimum):
            return repo.add(
                Account(
                    user_id=user.id,
                    name=name,
                    institution=institution,
                    account_type=account_type,
                    domain=domain,
                    current_balance=Decimal(balance),
                    safe_minimum_balance=Decimal(minimum),
                    include_in_forecast=True,
                    is_active=True,
                )
            )

        personal_checking = account("Personal Checking", "Chase Bank", "Checking", personal, "5000", "1000")
        personal_savings = account("Personal Savings", "Chase Bank", "Savings", personal, "15000", "5000")
        business_checking = account("Business Checking", "Bank of America", "Checking", business, "25000", "10000")
        business_savings = account("Business Savings", "Bank of America", "Savings", business, "50000", "20000")
        credit_card = account("Credit Card", "Chase", "Credit Card", personal, "-2500", "0")

        def bill(name, amount, day, due, domain, default_account, priority, auto_pay):
            return repo.add(
                Bill(
                    user_id=user.id,
                    name=name,
                    amount=Decimal(amount),
                    frequency=BillFrequency.MONTHLY,
                    day_of_month=day,
                    next_due_date=due,
                    domain=domain,
                    default_account_id=default_account.id,
                    priority=priority,
                    is_auto_pay=auto_pay,
                    is_active=True,
                )
            )

        first = first_of_next_month(now)
        rent = bill("Rent", "2000", 1, first, personal, personal_checking, 1, False)
        electric = bill("Electric Bill", "150", 15, next_due_date(15, now), personal, personal_checking, 2, True)
        internet = bill("Internet", "80", 10, next_due_date(10, now), personal, personal_checking, 2, True)
        bill("Phone Bill", "60", 5, next_due_date(5, now), personal, personal_checking, 3, True)
        bill("SaaS Subscriptions", "200", 1, first, business, business_checking, 3, True)
        bill("Office Rent", "1500", 1, first, business, business_checking, 1, False)

        payday = next_semi_monthly_payday(now)
        salary = repo.add(
            IncomeStream(
                user_id=user.id,
                name="Salary",
                typical_amount=Decimal("6000"),
                frequency=IncomeFrequency.SEMI_MONTHLY,
                domain=personal,
                account_id=personal_checking.id,
                next_expected_date=payday,
                next_expected_window_start=payday - timedelta(days=2),
                next_expected_window_end=payday + timedelta(days=2),
                is_active=True,
            )
        )
        repo.add(
            IncomeStream(
                user_id=user.id,
                name="Client Revenue",
                typical_amount=Decimal("10000"),
                frequency=IncomeFrequency.IRREGULAR,
                domain=business,
                account_id=business_checking.id,
                is_active=True,
            )
        )

        def goal(name, target, current, target_date, domain, strategy, fixed, priority):
            return repo.add(
                Goal(
                    user_id=user.id,
                    name=name,
                    target_amount=Decimal(target),
                    current_amount=Decimal(current),
                    target_date=target_date,
                    domain=domain,
                    funding_strategy=strategy,
                    fixed_contribution_amount=Decimal(fixed) if fixed else None,
                    priority=priority,
                    is_active=True,
                )
            )

        emergency_fund = goal(
            "Emergency Fund", "20000", "15000", now + relativedelta(months=12),
            personal, GoalFundingStrategy.FIXED_AMOUNT, "500", 1,
        )
        new_laptop = goal(
            "New Laptop", "3000", "1000", now + timedelta(days=90),
            business, GoalFundingStrategy.FIXED_AMOUNT, "300", 2,
        )
        vacation = goal(
            "Vacation Fund", "5000", "1500", now + relativedelta(months=6),
            personal, GoalFundingStrategy.SURPLUS, None, 3,
        )

        for linked_goal, linked_account in (
            (emergency_fund, personal_savings),
            (new_laptop, business_savings),
            (vacation, personal_savings),
        ):
            repo.add(GoalAccount(goal_id=linked_goal.id, account_id=linked_account.id))

        # Transactions des 30 derniers jours
        ledger = [
            (personal_checking, "6000", 15, "Salary Deposit", "Income", {"income_stream_id": salary.id}),
            (personal_checking, "6000", 30, "Salary Deposit", "Income", {"income_stream_id": salary.id}),
            (personal_checking, "-2000", 25, "Rent Payment", "Housing", {"bill_id": rent.id}),
            (personal_checking, "-150", 12, "Electric Bill", "Utilities", {"bill_id": electric.id}),
            (personal_checking, "-80", 18, "Internet Bill", "Utilities", {"bill_id": internet.id}),
            (personal_savings, "500", 15, "Emergency Fund Contribution", "Savings", {"goal_id": emergency_fund.id}),
            (business_savings, "300", 10, "Laptop Fund Contribution", "Savings", {"goal_id": new_laptop.id}),
            (personal_checking, "-120", 5, "Grocery Store", "Food & Dining", {}),
            (credit_card, "-75", 3, "Gas Station", "Transportation", {}),
        ]
        for owner, amount, days_ago, description, category, links in ledger:
            repo.add(
                Transaction(
                    account_id=owner.id,
                    amount=Decimal(amount),
                    date=now - timedelta(days=days_ago),
                    description=description,
                    category=category,
                    is_reconciled=True,
                    **links,
                )
            )

        for key, value in DEFAULT_SETTINGS.items():
            repo.add(Setting(user_id=user.id, setting_key=key, setting_value=value))

    logger.info("database_seeded", user_id=str(user.id))
    return True
