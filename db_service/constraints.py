"""
Descripteur statique des règles d'intégrité du schéma.

Construit une seule fois à l'import à partir de ``Base.metadata`` puis traité
comme une configuration en lecture seule : politiques de suppression
(cascade / remise à NULL) par relation, contraintes d'unicité, champs requis.
L'application de ces règles reste du ressort du moteur de stockage ; ce
descripteur sert à les documenter, à les tester et à nommer le champ fautif
lorsqu'une écriture est rejetée.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from sqlalchemy import Index, MetaData, UniqueConstraint

from db_service.base import Base
import db_service.models  # noqa: F401  (enregistre toutes les tables)


# Colonnes gérées par le socle commun, jamais fournies par l'appelant
MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at"})


class DeletePolicy(str, Enum):
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"


@dataclass(frozen=True)
class ForeignKeyRule:
    table: str
    column: str
    target_table: str
    target_column: str
    on_delete: DeletePolicy
    nullable: bool


@dataclass(frozen=True)
class UniqueRule:
    name: str
    table: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class TableRules:
    table: str
    required_fields: Tuple[str, ...]
    unique_constraints: Tuple[UniqueRule, ...]
    foreign_keys: Tuple[ForeignKeyRule, ...]


class IntegrityRuleset:
    """Vue immuable des règles d'intégrité, indexée par table."""

    def __init__(self, tables: Mapping[str, TableRules]):
        self._tables = MappingProxyType(dict(tables))
        by_name: Dict[str, UniqueRule] = {}
        for rules in self._tables.values():
            for unique in rules.unique_constraints:
                by_name[unique.name] = unique
        self._unique_by_name = MappingProxyType(by_name)

    @classmethod
    def from_metadata(cls, metadata: MetaData) -> "IntegrityRuleset":
        tables: Dict[str, TableRules] = {}
        for table in metadata.sorted_tables:
            required = tuple(
                column.name
                for column in table.columns
                if not column.nullable and column.name not in MANAGED_COLUMNS
            )

            uniques = []
            for constraint in table.constraints:
                if isinstance(constraint, UniqueConstraint):
                    uniques.append(
                        UniqueRule(
                            name=constraint.name,
                            table=table.name,
                            columns=tuple(c.name for c in constraint.columns),
                        )
                    )
            for index in table.indexes:
                if isinstance(index, Index) and index.unique:
                    uniques.append(
                        UniqueRule(
                            name=index.name,
                            table=table.name,
                            columns=tuple(c.name for c in index.columns),
                        )
                    )

            foreign_keys = []
            for column in table.columns:
                for fk in column.foreign_keys:
                    if fk.ondelete is None:
                        raise ValueError(f"{table.name}.{column.name} has no ON DELETE policy")
                    foreign_keys.append(
                        ForeignKeyRule(
                            table=table.name,
                            column=column.name,
                            target_table=fk.column.table.name,
                            target_column=fk.column.name,
                            on_delete=DeletePolicy(fk.ondelete.upper()),
                            nullable=bool(column.nullable),
                        )
                    )

            tables[table.name] = TableRules(
                table=table.name,
                required_fields=required,
                unique_constraints=tuple(sorted(uniques, key=lambda u: u.name)),
                foreign_keys=tuple(foreign_keys),
            )
        return cls(tables)

    @property
    def tables(self) -> Tuple[str, ...]:
        return tuple(self._tables.keys())

    def rules_for(self, table: str) -> TableRules:
        return self._tables[table]

    def required_fields(self, table: str) -> Tuple[str, ...]:
        return self._tables[table].required_fields

    def unique_constraints(self, table: str) -> Tuple[UniqueRule, ...]:
        return self._tables[table].unique_constraints

    def foreign_keys(self, table: str) -> Tuple[ForeignKeyRule, ...]:
        return self._tables[table].foreign_keys

    def constraint_by_name(self, name: str) -> Optional[UniqueRule]:
        return self._unique_by_name.get(name)

    def unique_rule_for_columns(self, table: str, columns) -> Optional[UniqueRule]:
        wanted = tuple(columns)
        for unique in self._tables[table].unique_constraints:
            if unique.columns == wanted:
                return unique
        return None

    def _referencing(self, target_table: str, policy: DeletePolicy) -> Tuple[ForeignKeyRule, ...]:
        return tuple(
            fk
            for rules in self._tables.values()
            for fk in rules.foreign_keys
            if fk.target_table == target_table and fk.on_delete == policy
        )

    def cascades_from(self, table: str) -> Tuple[ForeignKeyRule, ...]:
        """Relations dont les lignes enfants sont supprimées avec ``table``."""
        return self._referencing(table, DeletePolicy.CASCADE)

    def nullified_by(self, table: str) -> Tuple[ForeignKeyRule, ...]:
        """Références remises à NULL quand une ligne de ``table`` est supprimée."""
        return self._referencing(table, DeletePolicy.SET_NULL)


INTEGRITY_RULES = IntegrityRuleset.from_metadata(Base.metadata)
