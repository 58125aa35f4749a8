import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Uuid, event, inspect
from sqlalchemy.orm import declarative_base, object_session

from db_service.types import UTCDateTime


Base = declarative_base()


def utc_now() -> datetime:
    """Horloge par défaut du noyau : instant courant en UTC."""
    return datetime.now(timezone.utc)


def _now_for(target) -> datetime:
    # Horloge injectée par le dépôt via session.info["clock"], sinon horloge murale
    session = object_session(target)
    clock = session.info.get("clock") if session is not None else None
    return (clock or utc_now)()


class TimestampMixin:
    """Mixin qui ajoute l'identifiant et les champs de timestamp à tous les modèles."""

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


@event.listens_for(Base, "before_insert", propagate=True)
def _stamp_insert(mapper, connection, target):
    # Même instant pour les deux champs à la création
    if getattr(target, "created_at", None) is None:
        target.created_at = _now_for(target)
    target.updated_at = target.created_at


@event.listens_for(Base, "before_update", propagate=True)
def _stamp_update(mapper, connection, target):
    state = inspect(target)
    if not any(
        attr.history.has_changes() for attr in state.attrs if attr.key != "updated_at"
    ):
        return
    # updated_at strictement croissant, même si l'horloge stagne ou recule
    previous = state.committed_state.get("updated_at", target.__dict__.get("updated_at"))
    if not isinstance(previous, datetime):
        previous = target.__dict__.get("created_at")
    now = _now_for(target)
    if isinstance(previous, datetime):
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    target.updated_at = now
