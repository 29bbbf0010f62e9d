"""SQLite relational store.

This module provides:
- Database: engine wrapper implementing the RelationalStore contract
- Retry logic with exponential backoff for SQLite busy/locked errors
- Error mapping from SQLAlchemy exceptions to contractdb errors

Statements without parameters go to the driver untouched, so DDL may hold
any text. Parameterised statements use SQLAlchemy ``text()`` with named
binds.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from contractdb.config.models import DatabaseConfig
from contractdb.core.errors import InternalError, StoreError, StoreUnavailableError

if TYPE_CHECKING:
    from sqlalchemy import Connection, CursorResult, Engine

logger = structlog.get_logger()

MEMORY_PATH = ":memory:"

T = TypeVar("T")

_LOCKED_MARKERS = ("database is locked", "database is busy")
_UNAVAILABLE_MARKERS = (
    *_LOCKED_MARKERS,
    "unable to open database",
    "disk i/o error",
    "readonly database",
    "database disk image is malformed",
)


def _is_database_locked_error(error: Exception) -> bool:
    """Check if error is a SQLite database locked error."""
    error_str = str(error).lower()
    return any(marker in error_str for marker in _LOCKED_MARKERS)


def _is_unavailable_error(error: Exception) -> bool:
    """Errors about the store itself rather than the statement."""
    error_str = str(error).lower()
    return any(marker in error_str for marker in _UNAVAILABLE_MARKERS)


class Database:
    """SQLite engine wrapper with WAL mode and busy-retry.

    Accepts a filesystem path or ``":memory:"``. An in-memory database is
    shared by every connection of this instance.
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = 30_000,
        max_retries: int = 3,
        retry_base_delay: float = 0.1,
        retry_max_delay: float = 2.0,
    ) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self.engine = self._create_engine()

    @classmethod
    def from_config(cls, db_path: Path | str, config: DatabaseConfig | None = None) -> Database:
        config = config or DatabaseConfig()
        return cls(
            db_path,
            busy_timeout_ms=config.busy_timeout_ms,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay_sec,
            retry_max_delay=config.retry_max_delay_sec,
        )

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == MEMORY_PATH

    def _create_engine(self) -> Engine:
        if self.in_memory:
            engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                f"sqlite:///{self.db_path}",
                connect_args={"check_same_thread": False},
                pool_pre_ping=True,
            )
        busy_timeout_ms = self._busy_timeout_ms

        def configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        event.listen(engine, "connect", configure_pragmas)
        return engine

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for callers that map tables with SQLModel."""
        with Session(self.engine) as session:
            yield session

    def _run(self, operation: str, sql: str, fn: Callable[[Connection], T]) -> T:
        """Run ``fn`` in a transaction, retrying while SQLite reports busy."""
        for attempt in range(self._max_retries + 1):
            try:
                with self.engine.begin() as conn:
                    return fn(conn)
            except OperationalError as e:
                if _is_database_locked_error(e) and attempt < self._max_retries:
                    delay = min(self._retry_base_delay * (2**attempt), self._retry_max_delay)
                    logger.warning(
                        "sqlite_busy_retry",
                        operation=operation,
                        attempt=attempt + 1,
                        max_retries=self._max_retries,
                        delay_sec=delay,
                    )
                    time.sleep(delay)
                    continue
                if _is_unavailable_error(e):
                    raise StoreUnavailableError.from_exception(operation, e) from e
                raise StoreError.execution_failed(sql, e) from e
            except SQLAlchemyError as e:
                raise StoreError.execution_failed(sql, e) from e
        # Only reachable with a negative retry count
        raise InternalError.unexpected(
            "retry loop made no attempt", operation=operation, max_retries=self._max_retries
        )

    @staticmethod
    def _execute(conn: Connection, sql: str, params: Mapping[str, Any] | None) -> CursorResult[Any]:
        if params is None:
            return conn.exec_driver_sql(sql)
        return conn.execute(text(sql), dict(params))

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> None:
        """Execute one DDL/DML statement. Raises StoreError on failure."""
        self._run("execute", sql, lambda conn: self._execute(conn, sql, params))

    def execute_write(self, sql: str, params: Mapping[str, Any] | None = None) -> tuple[int, int | None]:
        """Execute DML and return ``(rowcount, lastrowid)``."""

        def run(conn: Connection) -> tuple[int, int | None]:
            result = self._execute(conn, sql, params)
            return int(result.rowcount), result.lastrowid

        return self._run("execute_write", sql, run)

    def query(self, sql: str, params: Mapping[str, Any] | None = None) -> tuple[list[str], list[dict[str, Any]]]:
        """Run a SELECT; returns column names and rows as dicts."""

        def run(conn: Connection) -> tuple[list[str], list[dict[str, Any]]]:
            result = self._execute(conn, sql, params)
            columns = list(result.keys())
            return columns, [dict(row) for row in result.mappings()]

        return self._run("query", sql, run)

    @property
    def user_version(self) -> int:
        """Schema version recorded in the SQLite header (0 for a new file)."""
        sql = "PRAGMA user_version"
        return self._run("user_version", sql, lambda conn: int(conn.exec_driver_sql(sql).scalar() or 0))

    @user_version.setter
    def user_version(self, version: int) -> None:
        self.execute(f"PRAGMA user_version = {int(version)}")
