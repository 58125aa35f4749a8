"""
Configuration globale des tests Money Matters.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

# Configuration environment variables AVANT tous les imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("SEED_ON_STARTUP", "false")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from db_service.base import Base  # noqa: E402
from db_service.models import FinancialDomain, User  # noqa: E402
from db_service.session import create_db_engine  # noqa: E402
from finance_service.repository import FinanceRepository  # noqa: E402


class FakeClock:
    """Horloge contrôlable injectée dans les composants du noyau."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    """Base SQLite en mémoire, clés étrangères activées."""
    db_engine = create_db_engine("sqlite://")
    Base.metadata.create_all(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session(engine):
    Session = sessionmaker(bind=engine, autoflush=False)
    with Session() as s:
        yield s


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def repo(session, clock):
    return FinanceRepository(session, clock=clock)


@pytest.fixture
def user(repo):
    return repo.create(User, email="owner@example.com", name="Owner")


@pytest.fixture
def make_account(repo, user):
    from db_service.models import Account

    def _make(name="Checking", domain=FinancialDomain.PERSONAL, **fields):
        fields.setdefault("account_type", "Checking")
        fields.setdefault("user_id", user.id)
        return repo.create(Account, name=name, domain=domain, **fields)

    return _make
