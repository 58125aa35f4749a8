"""
Types de colonnes partagés par tous les modèles.

- ``Money`` / ``Percent`` : décimaux à virgule fixe, sans passage par un float
  sur SQLite (stockés en texte), ``NUMERIC(p, s)`` ailleurs.
- ``UTCDateTime`` : horodatage toujours timezone-aware en UTC.
- ``IntEnumType`` : énumération persistée par son discriminant entier stable.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from enum import IntEnum
from typing import Optional, Type

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.types import TypeDecorator


class FixedPointDecimal(TypeDecorator):
    """Décimal à précision fixe ``(precision, scale)``."""

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 18, scale: int = 2):
        super().__init__(precision=precision, scale=scale, asdecimal=True)
        self.precision = precision
        self.scale = scale
        self._quantum = Decimal(1).scaleb(-scale)
        self._limit = Decimal(10) ** (precision - scale)

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            # Le NUMERIC de SQLite passe par un REAL : on garde la représentation exacte
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))

    def quantize(self, value) -> Optional[Decimal]:
        if value is None:
            return None
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
            amount = amount.quantize(self._quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal value: {value!r}") from exc
        if not amount.is_finite() or abs(amount) >= self._limit:
            raise ValueError(
                f"Decimal value {value} exceeds decimal({self.precision},{self.scale}) range"
            )
        return amount

    def process_bind_param(self, value, dialect):
        amount = self.quantize(value)
        if amount is None:
            return None
        if dialect.name == "sqlite":
            return str(amount)
        return amount

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(str(value)).quantize(self._quantum)

    @property
    def python_type(self):
        return Decimal


class Money(FixedPointDecimal):
    """Montant monétaire decimal(18,2)."""

    cache_ok = True

    def __init__(self):
        super().__init__(precision=18, scale=2)


class Percent(FixedPointDecimal):
    """Pourcentage decimal(5,2)."""

    cache_ok = True

    def __init__(self):
        super().__init__(precision=5, scale=2)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise un horodatage en UTC (naïf = déjà UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Horodatage UTC ; une valeur naïve est considérée comme déjà en UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == "sqlite":
            # SQLite ne conserve pas l'offset
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        return as_utc(value)

    @property
    def python_type(self):
        return datetime


class IntEnumType(TypeDecorator):
    """Persiste un ``IntEnum`` par sa valeur entière explicite."""

    impl = Integer
    cache_ok = True

    def __init__(self, enum_cls: Type[IntEnum]):
        super().__init__()
        self.enum_cls = enum_cls

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(self.enum_cls(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.enum_cls(value)

    @property
    def python_type(self):
        return self.enum_cls
