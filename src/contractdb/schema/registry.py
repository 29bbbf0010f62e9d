"""Schema registry: one DatabaseSchema plus a cached table-name index.

The registry is an explicit object owned by whoever builds the schema; there
is no process-wide registry. The name index is built lazily on the first
lookup, under a lock, and published only once complete. Registering a table
invalidates it; the next lookup rebuilds it the same way.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from contractdb.core.errors import DuplicateTableError, NotFoundError
from contractdb.locator.codec import LocatorCodec
from contractdb.locator.models import DataAction, Multiplicity

if TYPE_CHECKING:
    from contractdb.config.models import ContractDbConfig, LocatorConfig
    from contractdb.record.record import Record
    from contractdb.schema.models import DatabaseSchema, TableSchema

logger = structlog.get_logger()


@dataclass(frozen=True)
class TableInfo:
    """Runtime info for one table: its schema plus the database's locator codec."""

    table: TableSchema
    codec: LocatorCodec

    @property
    def name(self) -> str:
        return self.table.name

    def collection_locator(self) -> str:
        return self.codec.locator_for(self.table)

    def locator_for(self, record_id: object | None) -> str:
        return self.codec.locator_for(self.table, record_id)

    def wildcard_locator(self) -> str:
        return self.codec.wildcard_locator(self.table)

    def notification_locator(self, action: DataAction) -> str:
        return self.codec.notification_locator(self.table, action)

    def mime_type(self, multiplicity: Multiplicity) -> str:
        return self.codec.mime_type(self.table, multiplicity)

    def new_record(self) -> Record:
        from contractdb.record.record import Record

        return Record(self)


class Registry:
    """Registered tables of one database, addressable by name."""

    def __init__(self, schema: DatabaseSchema, locator_config: LocatorConfig | None = None) -> None:
        self.schema = schema
        self.codec = LocatorCodec(schema.name, locator_config)
        self._lock = threading.Lock()
        self._index: dict[str, TableSchema] | None = None

    @classmethod
    def from_config(cls, schema: DatabaseSchema, config: ContractDbConfig) -> Registry:
        return cls(schema, config.locator)

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def version(self) -> int:
        return self.schema.version

    def register_table(self, table: TableSchema) -> None:
        with self._lock:
            if any(t.name == table.name for t in self.schema.tables):
                raise DuplicateTableError.for_table(self.schema.name, table.name)
            self.schema.tables.append(table)
            self._index = None
        logger.debug("table_registered", database=self.schema.name, table=table.name)

    def _table_index(self) -> dict[str, TableSchema]:
        index = self._index
        if index is None:
            with self._lock:
                if self._index is None:
                    self._index = {t.name: t for t in self.schema.tables}
                index = self._index
        return index

    def table_by_name(self, name: str) -> TableSchema:
        table = self._table_index().get(name)
        if table is None:
            raise NotFoundError.table(self.schema.name, name)
        return table

    def has_table(self, name: str) -> bool:
        return name in self._table_index()

    def all_tables(self) -> list[TableSchema]:
        """Tables in registration order."""
        with self._lock:
            return list(self.schema.tables)

    def table_info(self, name: str) -> TableInfo:
        return TableInfo(self.table_by_name(name), self.codec)

    def new_record(self, table_name: str) -> Record:
        return self.table_info(table_name).new_record()
