"""contractdb: declarative table contracts with record marshalling over SQLite."""

from contractdb.config.loader import load_config
from contractdb.locator.models import DataAction, Multiplicity
from contractdb.record.envelope import KeyValueEnvelope
from contractdb.record.record import Record
from contractdb.schema.models import Column, DatabaseSchema, TableSchema, WildcardKind
from contractdb.schema.registry import Registry, TableInfo
from contractdb.schema.types import TypeTag
from contractdb.store.guard import UpdateGuard

__version__ = "0.1.0"

__all__ = [
    "Column",
    "DataAction",
    "DatabaseSchema",
    "KeyValueEnvelope",
    "Multiplicity",
    "Record",
    "Registry",
    "TableInfo",
    "TableSchema",
    "TypeTag",
    "UpdateGuard",
    "WildcardKind",
    "load_config",
]
