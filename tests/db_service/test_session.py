import pytest
from sqlalchemy import text

from db_service import session as db_session
from db_service.base import Base
from db_service.models import User


@pytest.fixture
def module_schema():
    Base.metadata.create_all(db_session.engine)
    yield
    Base.metadata.drop_all(db_session.engine)


def test_memory_engine_shares_one_database():
    engine = db_session.create_db_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE scratch (id INTEGER)"))
    with engine.connect() as conn:
        assert conn.execute(text("SELECT count(*) FROM scratch")).scalar_one() == 0
        assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1


def test_db_context_commits(module_schema):
    with db_session.get_db_context() as db:
        db.add(User(email="ctx@example.com", name="Ctx"))

    with db_session.get_db_context() as db:
        assert db.query(User).filter_by(email="ctx@example.com").count() == 1


def test_db_context_rolls_back_on_error(module_schema):
    with pytest.raises(RuntimeError):
        with db_session.get_db_context() as db:
            db.add(User(email="boom@example.com", name="Boom"))
            db.flush()
            raise RuntimeError("boom")

    with db_session.get_db_context() as db:
        assert db.query(User).count() == 0


def test_get_db_closes_session():
    generator = db_session.get_db()
    db = next(generator)
    assert db.execute(text("SELECT 1")).scalar_one() == 1
    generator.close()
