from pathlib import Path

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config
from alembic.migration import MigrationContext
from sqlalchemy import inspect

from db_service.base import Base
from db_service.session import create_db_engine


ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "alembic"


def _alembic_config(connection):
    # Pas de fichier ini : fileConfig désactiverait les loggers des autres tests
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    cfg.attributes["connection"] = connection
    return cfg


def test_upgrade_head_matches_models(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    try:
        with engine.begin() as connection:
            command.upgrade(_alembic_config(connection), "head")

            context = MigrationContext.configure(connection, opts={"compare_type": True})
            assert compare_metadata(context, Base.metadata) == []
            assert context.get_current_revision() == "0001_complete_schema_initial"

        tables = set(inspect(engine).get_table_names())
        assert tables == set(Base.metadata.tables) | {"alembic_version"}
        assert len(tables) == 11
    finally:
        engine.dispose()
