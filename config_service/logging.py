"""Structured logging utilities for Money Matters."""

from __future__ import annotations

import logging
import os
import uuid
from logging.handlers import RotatingFileHandler
from typing import Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

from config_service.config import settings


def _get_log_level(level: Optional[str] = None) -> int:
    if level:
        return logging.getLevelName(level.upper())
    env = settings.ENVIRONMENT.lower()
    if env == "test":
        return logging.WARNING
    return logging.getLevelName(settings.LOG_LEVEL.upper())


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog with JSON or console output."""
    log_level = _get_log_level(level)
    renderer_name = (fmt or settings.LOG_FORMAT).lower()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_TO_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(settings.LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5)
        )

    logging.basicConfig(level=log_level, format="%(message)s", handlers=handlers, force=True)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if renderer_name == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID to the logging context."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    bind_contextvars(correlation_id=correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Remove correlation data from the logging context."""
    clear_contextvars()
