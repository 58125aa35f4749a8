"""Repository performing atomic CRUD on the financial entity graph.

Uniqueness and foreign-key rules are enforced by the storage engine only;
this layer translates the engine's rejections into the error taxonomy and
never repairs a violation (no auto-created parent, no silent default).
"""

from __future__ import annotations

import logging
import re
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db_service.base import Base, utc_now
from db_service.constraints import INTEGRITY_RULES, MANAGED_COLUMNS
from db_service.models import (
    Alert,
    Goal,
    GoalAccount,
    Setting,
    Transaction,
    User,
)
from finance_service.exceptions import (
    FinanceCoreError,
    ForeignKeyViolationError,
    NotFoundError,
    RequiredFieldMissingError,
    TransactionAbortedError,
    UniquenessViolationError,
)
from finance_service.validation import validate_goal_configuration, validate_new_alert


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_STATEMENT_TABLE = re.compile(r'(?:INSERT INTO|UPDATE|DELETE FROM)\s+"?(\w+)"?', re.IGNORECASE)
_SQLITE_COLUMNS = re.compile(r"constraint failed:\s*(.+)$", re.IGNORECASE)

# Validations propres à une entité, exécutées avant le flush
_CREATE_VALIDATORS: Dict[type, List[Callable[[Any], None]]] = {
    Goal: [validate_goal_configuration],
    Alert: [validate_new_alert],
}
_UPDATE_VALIDATORS: Dict[type, List[Callable[[Any], None]]] = {
    Goal: [validate_goal_configuration],
}


def _model_for_table(table_name: str) -> Optional[type]:
    for mapper in Base.registry.mappers:
        if mapper.local_table.name == table_name:
            return mapper.class_
    return None


def as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


class FinanceRepository:
    """Handle CRUD operations for every entity of the financial model."""

    def __init__(self, db: Session, clock: Clock = utc_now) -> None:
        self._db = db
        self._clock = clock
        self._depth = 0
        self._rollback_only = False
        # Horloge lue par les listeners qui horodatent created_at / updated_at
        db.info["clock"] = clock

    @property
    def session(self) -> Session:
        return self._db

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def _rollback(self) -> None:
        self._db.rollback()
        # Un bloc englobant ne doit plus jamais committer
        if self._depth > 1:
            self._rollback_only = True

    @contextmanager
    def transaction(self):
        """Context manager for DB transactions.

        Commits if the outermost block succeeds, otherwise rolls back so that
        no partial write survives. Nested blocks join the outer transaction:
        once a nested block has rolled back, the outermost block raises
        ``TransactionAbortedError`` instead of committing, even if the caller
        caught the nested error.
        """
        if self._depth == 0:
            self._rollback_only = False
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                if self._rollback_only:
                    raise TransactionAbortedError()
                self._db.commit()
        except IntegrityError as exc:
            # Violation détectée au commit : rien n'a été écrit
            self._rollback()
            error = self._translate(exc)
            logger.warning("Write rejected: %s", error)
            raise error from exc
        except FinanceCoreError as exc:
            self._rollback()
            if self._depth == 1:
                logger.warning("Write rejected: %s", exc)
            raise
        except Exception:
            self._rollback()
            logger.exception("Database transaction failed; rolled back")
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._rollback_only = False

    def flush(self, entity: Any = None) -> None:
        """Flush pending changes; integrity errors are rolled back and translated."""
        fk_values = self._foreign_key_values(entity) if entity is not None else {}
        try:
            self._db.flush()
        except IntegrityError as exc:
            self._db.rollback()
            if self._depth > 0:
                self._rollback_only = True
            raise self._translate(exc, entity, fk_values) from exc

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------
    @staticmethod
    def _foreign_key_values(entity: Any) -> Dict[str, Any]:
        table = entity.__table__.name
        return {fk.column: entity.__dict__.get(fk.column) for fk in INTEGRITY_RULES.foreign_keys(table)}

    def _translate(
        self,
        exc: IntegrityError,
        entity: Any = None,
        fk_values: Optional[Dict[str, Any]] = None,
    ) -> FinanceCoreError:
        orig = exc.orig
        code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        text = str(orig)
        lowered = text.lower()

        table = None
        if entity is not None:
            table = entity.__table__.name
        else:
            match = _STATEMENT_TABLE.search(exc.statement or "")
            if match:
                table = match.group(1)
        model = _model_for_table(table) if table else None
        entity_name = model.__name__ if model is not None else (table or "unknown")

        if code == "23505" or "unique constraint" in lowered or "duplicate key" in lowered:
            fields, constraint = self._unique_fields(orig, text, table)
            return UniquenessViolationError(entity_name, fields, constraint=constraint)

        if code == "23502" or "not null constraint" in lowered or "null value in column" in lowered:
            field = getattr(getattr(orig, "diag", None), "column_name", None)
            if field is None:
                columns = self._sqlite_columns(text)
                field = columns[0] if columns else None
            return RequiredFieldMissingError(entity_name, field)

        if code == "23503" or "foreign key constraint" in lowered:
            field, referenced_id = self._locate_missing_parent(table, fk_values or {})
            return ForeignKeyViolationError(entity_name, field, referenced_id)

        return FinanceCoreError(
            message=f"Integrity error on {entity_name}: {text}",
            error_code="INTEGRITY_ERROR",
            entity=entity_name,
        )

    @staticmethod
    def _sqlite_columns(text: str) -> List[str]:
        match = _SQLITE_COLUMNS.search(text.strip())
        if not match:
            return []
        return [part.strip().split(".")[-1] for part in match.group(1).split(",") if part.strip()]

    def _unique_fields(self, orig: Any, text: str, table: Optional[str]):
        constraint_name = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint_name:
            rule = INTEGRITY_RULES.constraint_by_name(constraint_name)
            if rule is not None:
                return rule.columns, rule.name
        columns = self._sqlite_columns(text)
        rule = INTEGRITY_RULES.unique_rule_for_columns(table, columns) if table else None
        return tuple(columns), rule.name if rule else constraint_name

    def _locate_missing_parent(self, table: Optional[str], fk_values: Dict[str, Any]):
        # Diagnostic après rollback : l'insertion a déjà été refusée par le moteur
        if not table:
            return None, None
        for rule in INTEGRITY_RULES.foreign_keys(table):
            value = fk_values.get(rule.column)
            if value is None:
                continue
            target = _model_for_table(rule.target_table)
            if target is not None and self._db.get(target, value) is None:
                return rule.column, value
        return None, None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    @staticmethod
    def _check_required(entity: Any, provided: Iterable[str], creating: bool) -> None:
        table = entity.__table__
        provided = set(provided)
        for name in INTEGRITY_RULES.required_fields(table.name):
            if not creating:
                if name in provided and getattr(entity, name) is None:
                    raise RequiredFieldMissingError(type(entity).__name__, name)
                continue
            if entity.__dict__.get(name) is not None:
                continue
            # Une colonne avec défaut n'est manquante que si None est explicite
            if name in provided or table.columns[name].default is None:
                raise RequiredFieldMissingError(type(entity).__name__, name)

    def _validate(self, entity: Any, provided: Iterable[str], creating: bool) -> None:
        self._check_required(entity, provided, creating)
        validators = _CREATE_VALIDATORS if creating else _UPDATE_VALIDATORS
        for validator in validators.get(type(entity), []):
            validator(entity)

    @staticmethod
    def _payload(data: Any, fields: Mapping[str, Any]) -> Dict[str, Any]:
        if data is None:
            values: Dict[str, Any] = {}
        elif isinstance(data, BaseModel):
            values = data.model_dump(exclude_unset=True)
        else:
            values = dict(data)
        values.update(fields)
        return values

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create(self, model: Type[Any], data: Any = None, **fields: Any) -> Any:
        """Insert a new entity built from a payload (mapping, schema or kwargs)."""
        values = self._payload(data, fields)
        managed = (MANAGED_COLUMNS - {"id"}) & values.keys()
        if managed:
            raise ValueError(f"Managed fields cannot be provided: {sorted(managed)}")
        entity = model(**values)
        return self.add(entity, provided=values.keys())

    def add(self, entity: Any, provided: Optional[Iterable[str]] = None) -> Any:
        """Insert an already built entity instance."""
        if provided is None:
            provided = [key for key in entity.__dict__ if not key.startswith("_")]
        with self.transaction():
            self._validate(entity, provided, creating=True)
            self._db.add(entity)
            self.flush(entity)
        logger.debug("Created %s %s", type(entity).__name__, entity.id)
        return entity

    def find(self, model: Type[Any], entity_id: Any, for_update: bool = False) -> Optional[Any]:
        try:
            key = as_uuid(entity_id)
        except (TypeError, ValueError):
            return None
        if for_update:
            stmt = select(model).where(model.id == key).with_for_update()
            return self._db.execute(stmt).scalar_one_or_none()
        return self._db.get(model, key)

    def get(self, model: Type[Any], entity_id: Any, for_update: bool = False) -> Any:
        entity = self.find(model, entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundError(model.__name__, entity_id)
        return entity

    def update(self, model: Type[Any], entity_id: Any, changes: Any = None, **fields: Any) -> Any:
        """Apply ``changes`` to an existing entity in a single transaction."""
        values = self._payload(changes, fields)
        immutable = MANAGED_COLUMNS & values.keys()
        if immutable:
            raise ValueError(f"Fields are immutable: {sorted(immutable)}")
        columns = model.__table__.columns
        unknown = [key for key in values if key not in columns]
        if unknown:
            raise ValueError(f"Unknown fields for {model.__name__}: {sorted(unknown)}")

        with self.transaction():
            entity = self.get(model, entity_id, for_update=True)
            for key, value in values.items():
                setattr(entity, key, value)
            self._validate(entity, values.keys(), creating=False)
            self.flush(entity)
        return entity

    def delete(self, model: Type[Any], entity_id: Any) -> None:
        """Delete an entity; dependants follow the storage engine's rules."""
        with self.transaction():
            entity = self.get(model, entity_id)
            self._db.delete(entity)
            self.flush()
            # Les cascades / SET NULL ont eu lieu côté moteur
            self._db.expire_all()
        logger.debug("Deleted %s %s", model.__name__, entity_id)

    def list(self, model: Type[Any], order_by: Optional[Iterable[Any]] = None, **filters: Any) -> List[Any]:
        stmt = select(model).filter_by(**filters)
        stmt = stmt.order_by(*(order_by or (model.created_at, model.id)))
        return list(self._db.execute(stmt).scalars())

    def count(self, model: Type[Any], **filters: Any) -> int:
        stmt = select(func.count()).select_from(model).filter_by(**filters)
        return self._db.execute(stmt).scalar_one()

    # ------------------------------------------------------------------
    # Lookups (reverse collections over indexed foreign keys)
    # ------------------------------------------------------------------
    def get_user_by_email(self, email: str) -> Optional[User]:
        # Comparaison exacte, sensible à la casse
        return self._db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def list_transactions(self, account_id: Any) -> List[Transaction]:
        return self.list(
            Transaction,
            order_by=(Transaction.date.desc(), Transaction.created_at.desc()),
            account_id=as_uuid(account_id),
        )

    def list_goal_accounts(self, goal_id: Any = None, account_id: Any = None) -> List[GoalAccount]:
        filters = {}
        if goal_id is not None:
            filters["goal_id"] = as_uuid(goal_id)
        if account_id is not None:
            filters["account_id"] = as_uuid(account_id)
        return self.list(GoalAccount, **filters)

    def get_setting(self, user_id: Any, key: str) -> Optional[Setting]:
        stmt = select(Setting).where(
            Setting.user_id == as_uuid(user_id), Setting.setting_key == key
        )
        return self._db.execute(stmt).scalar_one_or_none()

    def get_setting_value(self, user_id: Any, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = self.get_setting(user_id, key)
        return setting.setting_value if setting is not None else default
