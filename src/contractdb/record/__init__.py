"""Record marshalling engine and its collaborator contracts."""

from contractdb.record.cursor import RowsCursor
from contractdb.record.envelope import KeyValueEnvelope
from contractdb.record.record import Record
from contractdb.record.resolver import RelationalStore, Resolver, RowCursor

__all__ = [
    "KeyValueEnvelope",
    "Record",
    "RelationalStore",
    "Resolver",
    "RowCursor",
    "RowsCursor",
]
