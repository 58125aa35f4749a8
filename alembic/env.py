"""
Environnement Alembic du noyau financier.

Les migrations ciblent ``db_service.base.Base.metadata`` et l'URL résolue par
``GlobalSettings`` ; sur SQLite l'engine vient de ``create_db_engine`` afin que
les clés étrangères soient appliquées pendant les migrations.
"""

import logging
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from config_service.config import settings
from db_service.base import Base
from db_service.session import create_db_engine
import db_service.models  # noqa: F401  (enregistre les dix tables)

logger = logging.getLogger("alembic")

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# URL déjà normalisée (postgres:// -> postgresql://) par GlobalSettings
database_url = settings.DATABASE_URL or settings.SQLALCHEMY_DATABASE_URI
if database_url:
    config.set_main_option("sqlalchemy.url", str(database_url))

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Génère le script SQL sans connexion."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_on(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        logger.info(
            "Running migrations on %s (%d tables in metadata)",
            connection.dialect.name,
            len(target_metadata.tables),
        )
        context.run_migrations()


def run_migrations_online() -> None:
    """Applique les migrations sur la base configurée."""
    # Connexion fournie par l'appelant (tests, init programmatique)
    connection = config.attributes.get("connection")
    if connection is not None:
        _run_on(connection)
        return

    url = config.get_main_option("sqlalchemy.url")
    if _is_sqlite(url):
        connectable = create_db_engine(url)
    else:
        # Connexion unique, sans pool dimensionné
        connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _run_on(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
