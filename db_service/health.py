"""
Module de healthcheck pour la base de données.

Fournit des fonctions pour vérifier la connexion et la présence du schéma.
"""
from typing import Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
import logging

from db_service.base import Base
import db_service.models  # noqa: F401

logger = logging.getLogger(__name__)


def _default_engine() -> Engine:
    from db_service.session import engine

    return engine


def check_database_health(engine: Optional[Engine] = None) -> tuple[bool, str]:
    """
    Vérifie la santé de la connexion à la base de données.

    Returns:
        tuple[bool, str]: (is_healthy, message)
            - is_healthy: True si la DB est accessible, False sinon
            - message: Message descriptif de l'état
    """
    engine = engine or _default_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1")).fetchone()
        return True, "Database connection successful"

    except SQLAlchemyError as e:
        error_msg = f"Database connection failed: {str(e)}"
        logger.error(error_msg)
        return False, error_msg


def check_schema_health(engine: Optional[Engine] = None) -> dict:
    """
    Compare les tables attendues par les modèles à celles présentes en base.

    Returns:
        dict: tables attendues, tables manquantes et indicateur ``healthy``
    """
    engine = engine or _default_engine()
    expected = sorted(Base.metadata.tables.keys())
    try:
        present = set(inspect(engine).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Error inspecting schema: {str(e)}")
        return {"healthy": False, "expected": expected, "missing": expected, "error": str(e)}

    missing = [name for name in expected if name not in present]
    if missing:
        logger.warning("Missing tables: %s", ", ".join(missing))
    return {"healthy": not missing, "expected": expected, "missing": missing}
