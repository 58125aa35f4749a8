"""
Initialisation de la base : création du schéma puis seed optionnel.

En développement, le schéma est créé directement depuis les modèles et le jeu
de données de démonstration est chargé ; ailleurs, Alembic gère le schéma.
"""
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from config_service.config import settings
from db_service.base import Base
import db_service.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_database(engine: Engine, seed: Optional[bool] = None) -> bool:
    """
    Crée les tables manquantes et applique le seed si demandé.

    Args:
        engine: engine cible
        seed: force ou désactive le seed ; par défaut ``settings.SEED_ON_STARTUP``

    Returns:
        bool: True si le seed a écrit des données
    """
    from finance_service.seed import seed_database

    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready (%d tables)", len(Base.metadata.tables))

    if seed is None:
        seed = bool(settings.SEED_ON_STARTUP)
    if not seed:
        return False

    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        return seed_database(session)
    finally:
        session.close()


def main() -> int:
    """Point d'entrée ``moneymatters-init-db``."""
    from config_service.logging import configure_logging
    from db_service.health import check_database_health
    from db_service.session import engine

    configure_logging()
    healthy, message = check_database_health(engine)
    if not healthy:
        logger.error(message)
        return 1
    seeded = init_database(engine)
    logger.info("Database initialized (seeded=%s)", seeded)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
