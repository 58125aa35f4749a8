from db_service.health import check_database_health, check_schema_health
from db_service.session import create_db_engine


def test_database_health_ok(engine):
    healthy, message = check_database_health(engine)
    assert healthy
    assert message == "Database connection successful"


def test_database_health_reports_failure(tmp_path):
    broken = create_db_engine(f"sqlite:///{tmp_path}/missing/dir/db.sqlite")
    healthy, message = check_database_health(broken)
    assert not healthy
    assert message.startswith("Database connection failed")


def test_schema_health_complete(engine):
    report = check_schema_health(engine)
    assert report["healthy"]
    assert report["missing"] == []
    assert len(report["expected"]) == 10


def test_schema_health_lists_missing_tables():
    empty = create_db_engine("sqlite://")
    report = check_schema_health(empty)
    assert not report["healthy"]
    assert "users" in report["missing"]
    assert len(report["missing"]) == 10
