"""Locator-routed CRUD over a Database.

``ContractResolver`` implements the Resolver contract for the tables of one
registry. A locator addresses either a whole table (``.../<table>``) or one
row (``.../<table>/<id>``); row locators add ``<id column> = ?`` to the
statement. Successful writes are published on the standard locator and on
its action-tagged notification locator.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from contractdb.config.constants import QUERY_LIMIT, QUERY_OFFSET
from contractdb.core.errors import NotFoundError, WriteSetError
from contractdb.locator.codec import to_notification_locator
from contractdb.locator.models import DataAction
from contractdb.record.cursor import RowsCursor
from contractdb.schema.models import WildcardKind, quote_identifier

if TYPE_CHECKING:
    from contractdb.locator.models import ParsedLocator
    from contractdb.schema.models import TableSchema
    from contractdb.schema.registry import Registry
    from contractdb.store.database import Database
    from contractdb.store.notify import ChangeNotifier

logger = structlog.get_logger()


def _bind(values: Mapping[str, Any], prefix: str = "p") -> tuple[list[str], dict[str, Any]]:
    """Quoted column names plus named parameters (columns may hold spaces)."""
    columns: list[str] = []
    params: dict[str, Any] = {}
    for i, (column, value) in enumerate(values.items()):
        columns.append(quote_identifier(column))
        params[f"{prefix}{i}"] = value
    return columns, params


class ContractResolver:
    """Resolver backed by SQLite, routing locators through the registry's codec."""

    def __init__(self, database: Database, registry: Registry, notifier: ChangeNotifier | None = None) -> None:
        self.database = database
        self.registry = registry
        self.notifier = notifier

    # -- routing -----------------------------------------------------------

    def _route(self, locator: str) -> tuple[ParsedLocator, TableSchema]:
        parsed = self.registry.codec.parse(locator)
        if parsed is None or not self.registry.has_table(parsed.table):
            raise NotFoundError.locator(locator)
        table = self.registry.table_by_name(parsed.table)
        if parsed.is_row and table.wildcard_kind is WildcardKind.NUMERIC and not parsed.id_segment.isdigit():
            raise NotFoundError.locator(locator)
        return parsed, table

    @staticmethod
    def _id_param(table: TableSchema, id_segment: str) -> Any:
        return int(id_segment) if table.wildcard_kind is WildcardKind.NUMERIC else id_segment

    def _where(self, parsed: ParsedLocator, table: TableSchema, params: dict[str, Any]) -> str:
        if not parsed.is_row:
            return ""
        params["row_id"] = self._id_param(table, parsed.id_segment)
        return f" WHERE {quote_identifier(table.id_field)} = :row_id"

    def _standard_locator(self, parsed: ParsedLocator, table: TableSchema) -> str:
        return self.registry.codec.locator_for(table, parsed.id_segment)

    def _publish(self, locator: str, action: DataAction) -> None:
        if self.notifier is None:
            return
        self.notifier.notify(locator)
        self.notifier.notify(to_notification_locator(locator, action))

    # -- Resolver ------------------------------------------------------------

    def get_type(self, locator: str) -> str | None:
        """MIME type of what ``locator`` addresses, or None if it is not routable."""
        try:
            parsed, table = self._route(locator)
        except NotFoundError:
            return None
        return self.registry.codec.mime_type(table, parsed.multiplicity)

    def insert(self, locator: str, write_set: Mapping[str, Any]) -> str | None:
        """Insert ``write_set`` as given and return the new row's locator.

        The default-value policy is not applied here; ``Record.create`` runs
        it once before handing over the write-set. String-keyed tables have no
        generated id, so their id column must be written.
        """
        parsed, table = self._route(locator)
        if parsed.is_row:
            raise NotFoundError.locator(locator)
        values = dict(write_set)
        missing = table.missing_required(values)
        if table.wildcard_kind is WildcardKind.STRING and values.get(table.id_field) is None:
            missing.insert(0, table.id_field)
        if missing:
            raise WriteSetError.missing_column(table.name, missing[0])

        if values:
            columns, params = _bind(values)
            placeholders = ", ".join(f":{name}" for name in params)
            sql = f"INSERT INTO {quote_identifier(table.name)} ({', '.join(columns)}) VALUES ({placeholders})"
            _, last_row_id = self.database.execute_write(sql, params)
        else:
            sql = f"INSERT INTO {quote_identifier(table.name)} DEFAULT VALUES"
            _, last_row_id = self.database.execute_write(sql)

        new_id = values.get(table.id_field)
        if new_id is None:
            new_id = last_row_id
        if new_id is None:
            return None
        new_locator = self.registry.codec.locator_for(table, new_id)
        logger.debug("record_inserted", table=table.name, locator=new_locator)
        self._publish(new_locator, DataAction.INSERT)
        return new_locator

    def query(self, locator: str) -> RowsCursor:
        parsed, table = self._route(locator)
        params: dict[str, Any] = {}
        sql = f"SELECT * FROM {quote_identifier(table.name)}"
        sql += self._where(parsed, table, params)
        if table.default_sort_order:
            sql += f" ORDER BY {table.default_sort_order}"
        limit = parsed.query.get(QUERY_LIMIT, "")
        if limit.isdigit():
            sql += f" LIMIT {int(limit)}"
            offset = parsed.query.get(QUERY_OFFSET, "")
            if offset.isdigit():
                sql += f" OFFSET {int(offset)}"
        columns, rows = self.database.query(sql, params)
        return RowsCursor(rows, columns)

    def update(self, locator: str, write_set: Mapping[str, Any]) -> int:
        parsed, table = self._route(locator)
        if not write_set:
            return 0
        columns, params = _bind(write_set)
        assignments = ", ".join(f"{col} = :{name}" for col, name in zip(columns, params, strict=True))
        sql = f"UPDATE {quote_identifier(table.name)} SET {assignments}"
        sql += self._where(parsed, table, params)
        count, _ = self.database.execute_write(sql, params)
        logger.debug("records_updated", table=table.name, locator=locator, count=count)
        if count > 0:
            self._publish(self._standard_locator(parsed, table), DataAction.UPDATE)
        return count

    def delete(self, locator: str) -> int:
        parsed, table = self._route(locator)
        params: dict[str, Any] = {}
        sql = f"DELETE FROM {quote_identifier(table.name)}"
        sql += self._where(parsed, table, params)
        count, _ = self.database.execute_write(sql, params)
        logger.debug("records_deleted", table=table.name, locator=locator, count=count)
        if count > 0:
            self._publish(self._standard_locator(parsed, table), DataAction.DELETE)
        return count
