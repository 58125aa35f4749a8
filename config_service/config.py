from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import os
from pydantic import field_validator
from urllib.parse import quote_plus
import logging

# Configurer un logger pour le module
logger = logging.getLogger(__name__)


class GlobalSettings(BaseSettings):
    """
    Configuration globale de Money Matters.
    Cette classe centralise toutes les variables d'environnement utilisées par le noyau financier.
    """
    # ==========================================
    # CONFIGURATION GÉNÉRALE DE L'APPLICATION
    # ==========================================
    PROJECT_NAME: str = "Money Matters"
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "production")

    # ==========================================
    # CONFIGURATION BASE DE DONNÉES
    # ==========================================
    POSTGRES_SERVER: str = os.environ.get("POSTGRES_SERVER", "localhost")
    POSTGRES_USER: str = os.environ.get("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.environ.get("POSTGRES_PASSWORD", "")
    POSTGRES_DB: str = os.environ.get("POSTGRES_DB", "moneymatters")
    POSTGRES_PORT: str = os.environ.get("POSTGRES_PORT", "5432")
    DATABASE_URL: Optional[str] = os.environ.get("DATABASE_URL", None)
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    # Pool de connexions (ignoré pour SQLite)
    DB_POOL_SIZE: int = int(os.environ.get("DB_POOL_SIZE", "20"))
    DB_MAX_OVERFLOW: int = int(os.environ.get("DB_MAX_OVERFLOW", "30"))
    DB_POOL_RECYCLE: int = int(os.environ.get("DB_POOL_RECYCLE", "3600"))
    DB_ECHO: bool = os.environ.get("DB_ECHO", "False").lower() == "true"

    # ==========================================
    # CONFIGURATION LOGGING
    # ==========================================
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.environ.get("LOG_FORMAT", "json")  # json | console
    LOG_FILE: str = os.environ.get("LOG_FILE", "logs/moneymatters.log")
    LOG_TO_FILE: bool = os.environ.get("LOG_TO_FILE", "False").lower() == "true"

    # ==========================================
    # DONNÉES DE DÉVELOPPEMENT
    # ==========================================
    SEED_ON_STARTUP: Optional[bool] = None
    SEED_USER_EMAIL: str = os.environ.get("SEED_USER_EMAIL", "dev@moneymatters.local")

    # ==========================================
    # VALEURS PAR DÉFAUT DU DOMAINE
    # ==========================================
    DEFAULT_TIME_ZONE: str = os.environ.get("DEFAULT_TIME_ZONE", "America/New_York")
    DEFAULT_FORECAST_HORIZON_DAYS: int = int(os.environ.get("DEFAULT_FORECAST_HORIZON_DAYS", "30"))

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info):
        if v:
            return v

        # Utiliser directement DATABASE_URL si présent
        db_url = info.data.get("DATABASE_URL")
        if db_url:
            # Convertir postgres:// en postgresql:// si nécessaire
            if db_url.startswith("postgres://"):
                db_url = db_url.replace("postgres://", "postgresql://", 1)
            logger.debug("Utilisation de DATABASE_URL pour la connexion à la base de données")
            return db_url

        # Si pas de DATABASE_URL, utiliser les composants individuels
        data = info.data
        server = data.get("POSTGRES_SERVER", "")
        port = data.get("POSTGRES_PORT", "5432")
        user = quote_plus(data.get("POSTGRES_USER", ""))
        password = quote_plus(data.get("POSTGRES_PASSWORD", ""))
        db = data.get("POSTGRES_DB", "")

        if not server or server == "localhost":
            logger.debug("Configuration d'une connexion locale à la base de données")
        else:
            logger.debug(f"Configuration d'une connexion à la base de données sur {server}")

        return f"postgresql://{user}:{password}@{server}:{port}/{db}"

    @field_validator("SEED_ON_STARTUP", mode="before")
    @classmethod
    def default_seed_flag(cls, v, info):
        # Seed automatique uniquement en développement, sauf choix explicite
        if v is None or v == "":
            return info.data.get("ENVIRONMENT", "production").lower() == "development"
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT.lower() == "test"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        validate_default=True,
    )


# Instance unique, construite une fois au démarrage et traitée en lecture seule
settings = GlobalSettings()
