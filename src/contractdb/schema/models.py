"""Declarative database and table definitions.

Pure data plus a few policy methods; nothing here performs I/O.

A table's mapped fields are resolved once, when the TableSchema is built:
each declared column gets a field name (spaces become underscores) and a
TypeTag. Records marshal through this table instead of inspecting
attributes at runtime.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from contractdb.config.constants import DEFAULT_ID_FIELD, WILDCARD_NUMERIC, WILDCARD_STRING
from contractdb.core.errors import DuplicateTableError
from contractdb.schema.types import TypeTag, resolve_tag

WriteSet = dict[str, Any]
DefaultValuePolicy = Callable[[WriteSet], WriteSet | None]


def field_name_for(column_name: str) -> str:
    """Record field name for a column: spaces are not valid in field names."""
    return column_name.replace(" ", "_")


def quote_identifier(name: str) -> str:
    """Quote a table/column name for SQL (names may contain spaces)."""
    return '"' + name.replace('"', '""') + '"'


class WildcardKind(StrEnum):
    """Kind of id a table is keyed by, which selects its locator wildcard."""

    NUMERIC = "numeric"
    STRING = "string"

    @property
    def marker(self) -> str:
        return WILDCARD_NUMERIC if self is WildcardKind.NUMERIC else WILDCARD_STRING

    @property
    def id_tag(self) -> TypeTag:
        return TypeTag.INT64 if self is WildcardKind.NUMERIC else TypeTag.STRING


@dataclass(frozen=True)
class Column:
    """A declared column.

    ``dtype`` may be a TypeTag, a tag name, or a Python type. Declarations
    that resolve to no tag are kept (the column still exists) but are
    skipped by marshalling.
    """

    name: str
    dtype: TypeTag | str | type | None = TypeTag.STRING

    @property
    def tag(self) -> TypeTag | None:
        return resolve_tag(self.dtype)


@dataclass(frozen=True, slots=True)
class MappedField:
    """One entry of a table's column -> field map."""

    column: str
    field: str
    tag: TypeTag | None

    @property
    def supported(self) -> bool:
        return self.tag is not None


@dataclass(frozen=True, eq=False)
class TableSchema:
    """Declarative description of one table."""

    name: str
    ddl: str
    columns: tuple[Column, ...] = ()
    id_field: str = DEFAULT_ID_FIELD
    required_columns: frozenset[str] = frozenset()
    wildcard_kind: WildcardKind = WildcardKind.NUMERIC
    default_value_policy: DefaultValuePolicy | None = None
    default_sort_order: str | None = None

    fields: tuple[MappedField, ...] = field(init=False, repr=False)
    _by_field: Mapping[str, MappedField] = field(init=False, repr=False)
    _by_column: Mapping[str, MappedField] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        columns = tuple(self.columns)
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "required_columns", frozenset(self.required_columns))
        object.__setattr__(self, "wildcard_kind", WildcardKind(self.wildcard_kind))

        mapped: list[MappedField] = []
        if all(col.name != self.id_field for col in columns):
            mapped.append(
                MappedField(self.id_field, field_name_for(self.id_field), self.wildcard_kind.id_tag)
            )
        mapped.extend(MappedField(col.name, field_name_for(col.name), col.tag) for col in columns)

        object.__setattr__(self, "fields", tuple(mapped))
        object.__setattr__(self, "_by_field", {f.field: f for f in mapped})
        object.__setattr__(self, "_by_column", {f.column: f for f in mapped})

    @property
    def id_field_name(self) -> str:
        """Record field holding the id."""
        return field_name_for(self.id_field)

    @property
    def wildcard(self) -> str:
        return self.wildcard_kind.marker

    @property
    def column_names(self) -> list[str]:
        return [f.column for f in self.fields]

    def mapped_field(self, field_name: str) -> MappedField | None:
        return self._by_field.get(field_name)

    def field_for_column(self, column_name: str) -> MappedField | None:
        return self._by_column.get(column_name)

    def apply_defaults(self, write_set: WriteSet) -> WriteSet:
        """Run the default-value policy over a copy of ``write_set``.

        A policy may return a new mapping or mutate the one it is given and
        return None.
        """
        values = dict(write_set)
        if self.default_value_policy is None:
            return values
        result = self.default_value_policy(values)
        return dict(result) if result is not None else values

    def missing_required(self, write_set: Mapping[str, Any]) -> list[str]:
        return sorted(col for col in self.required_columns if col not in write_set)

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {quote_identifier(self.name)}"

    def empty_sql(self) -> str:
        return f"DELETE FROM {quote_identifier(self.name)}"


@dataclass
class DatabaseSchema:
    """Declarative description of a database: name, version, ordered tables."""

    name: str
    version: int = 1
    tables: list[TableSchema] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError(f"Schema version must be >= 1, got {self.version}")
        self.tables = list(self.tables)
        seen: set[str] = set()
        for table in self.tables:
            if table.name in seen:
                raise DuplicateTableError.for_table(self.name, table.name)
            seen.add(table.name)

    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

