from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager

from config_service.config import settings


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite n'applique les clés étrangères (CASCADE / SET NULL) que sur demande
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """
    Crée un engine configuré pour le noyau financier.

    PostgreSQL : pool dimensionné par la configuration, isolation READ COMMITTED.
    SQLite : clés étrangères activées sur chaque connexion ; une base en mémoire
    partage une connexion unique entre toutes les sessions.
    """
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(database_url):
            options["poolclass"] = StaticPool
        options.update(kwargs)
        db_engine = create_engine(database_url, echo=settings.DB_ECHO, **options)
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
        return db_engine

    options = {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "isolation_level": "READ COMMITTED",
    }
    options.update(kwargs)
    return create_engine(database_url, echo=settings.DB_ECHO, **options)


# Récupérer l'URL de connexion, fallback sur SQLite pour les tests
database_url = settings.DATABASE_URL or settings.SQLALCHEMY_DATABASE_URI or "sqlite://"

# Création de l'engine central (paresseux : aucune connexion n'est ouverte ici)
engine = create_db_engine(database_url)

# Création d'une factory de session partagée
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Pour obtenir une session de base de données
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Helper contextmanager pour les opérations hors de toute couche de transport
@contextmanager
def get_db_context():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
