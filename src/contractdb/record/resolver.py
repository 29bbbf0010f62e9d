"""Collaborator contracts consumed by the marshalling engine.

The core calls resolvers and reads cursors; it never routes locators or
talks to a store itself. ``contractdb.store`` ships SQLite-backed
implementations; any object with these methods works.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class RowCursor(Protocol):
    """Forward-only, closeable iterator over query results.

    Typed getters read the current row by column name and return None for
    SQL NULL. A getter may raise ValueError/TypeError when the stored value
    cannot be read as the requested type.
    """

    def next(self) -> bool:
        """Advance to the next row; False when exhausted."""
        ...

    def has_column(self, name: str) -> bool: ...

    def get_string(self, name: str) -> str | None: ...

    def get_int(self, name: str) -> int | None: ...

    def get_float(self, name: str) -> float | None: ...

    def close(self) -> None: ...


class Resolver(Protocol):
    """CRUD dispatcher keyed by resource locator.

    All methods may raise StoreUnavailableError.
    """

    def insert(self, locator: str, write_set: Mapping[str, Any]) -> str | None:
        """Insert a row; returns the new row's locator."""
        ...

    def query(self, locator: str) -> RowCursor | None: ...

    def update(self, locator: str, write_set: Mapping[str, Any]) -> int:
        """Returns the number of affected rows."""
        ...

    def delete(self, locator: str) -> int:
        """Returns the number of affected rows."""
        ...


class RelationalStore(Protocol):
    """Executes DDL/DML. Failures raise StoreError."""

    def execute(self, sql: str) -> None: ...
