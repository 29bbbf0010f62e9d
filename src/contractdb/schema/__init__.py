"""Schema registry: tables, columns, type tags."""

from contractdb.schema.models import (
    Column,
    DatabaseSchema,
    MappedField,
    TableSchema,
    WildcardKind,
    WriteSet,
    field_name_for,
)
from contractdb.schema.registry import Registry, TableInfo
from contractdb.schema.types import TypeTag, coerce, resolve_tag, zero_value

__all__ = [
    "Column",
    "DatabaseSchema",
    "MappedField",
    "Registry",
    "TableInfo",
    "TableSchema",
    "TypeTag",
    "WildcardKind",
    "WriteSet",
    "coerce",
    "field_name_for",
    "resolve_tag",
    "zero_value",
]
