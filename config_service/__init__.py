"""
Module de configuration centralisée pour Money Matters.

Ce module fournit un point d'accès unique aux paramètres de configuration
du noyau financier (base de données, logging, valeurs par défaut du domaine).
"""

from config_service.config import settings

__all__ = ["settings"]
