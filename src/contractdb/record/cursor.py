"""In-memory row cursor.

Rows are fetched eagerly, so the cursor holds no database connection and
closing it only releases the buffered rows. Typed getters follow SQLite's
loose typing: numbers read as strings, numeric text reads as numbers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import TracebackType
from typing import Any


class RowsCursor:
    """Forward-only cursor over a list of column -> value mappings."""

    def __init__(self, rows: Iterable[Mapping[str, Any]], columns: Sequence[str] | None = None) -> None:
        self._rows: list[Mapping[str, Any]] = [dict(row) for row in rows]
        if columns is None:
            seen: dict[str, None] = {}
            for row in self._rows:
                seen.update(dict.fromkeys(row))
            columns = list(seen)
        self._columns = list(columns)
        self._pos = -1
        self._closed = False

    def __enter__(self) -> RowsCursor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def position(self) -> int:
        return self._pos

    def next(self) -> bool:
        if self._closed or self._pos + 1 >= len(self._rows):
            self._pos = len(self._rows)
            return False
        self._pos += 1
        return True

    def close(self) -> None:
        self._closed = True
        self._rows = []

    def has_column(self, name: str) -> bool:
        return name in self._columns

    def _current(self, name: str) -> Any:
        if self._closed:
            raise ValueError("Cursor is closed")
        if not 0 <= self._pos < len(self._rows):
            raise IndexError(f"Cursor is not positioned on a row (position {self._pos})")
        return self._rows[self._pos].get(name)

    def get_value(self, name: str) -> Any:
        return self._current(name)

    def get_string(self, name: str) -> str | None:
        value = self._current(name)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def get_int(self, name: str) -> int | None:
        value = self._current(name)
        if value is None:
            return None
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            return int(value.strip())
        raise TypeError(f"Column '{name}' holds {type(value).__name__}, not an integer")

    def get_float(self, name: str) -> float | None:
        value = self._current(name)
        if value is None:
            return None
        if isinstance(value, (int, float, str)):
            return float(value)
        raise TypeError(f"Column '{name}' holds {type(value).__name__}, not a number")
