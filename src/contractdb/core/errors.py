"""contractdb error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Schema / registry
- 4xxx: Store / resolver
- 5xxx: Write-set validation
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Schema (3xxx)
    SCHEMA_DUPLICATE_TABLE = 3001
    SCHEMA_TABLE_NOT_FOUND = 3002
    SCHEMA_LOCATOR_NOT_ROUTABLE = 3003

    # Store (4xxx)
    STORE_UNAVAILABLE = 4001
    STORE_EXECUTION_FAILED = 4002

    # Write-set (5xxx)
    WRITESET_MISSING_COLUMN = 5001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ContractDbError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'STORE_UNAVAILABLE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ContractDbError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class DuplicateTableError(ContractDbError):
    """A table with the same name is already registered."""

    @classmethod
    def for_table(cls, db_name: str, table_name: str) -> "DuplicateTableError":
        return cls(
            code=ErrorCode.SCHEMA_DUPLICATE_TABLE,
            message=f"Table '{table_name}' is already registered in '{db_name}'",
            details={"database": db_name, "table": table_name},
        )


class NotFoundError(ContractDbError):
    """Unknown table name, or a locator that does not address a known table."""

    @classmethod
    def table(cls, db_name: str, table_name: str) -> "NotFoundError":
        return cls(
            code=ErrorCode.SCHEMA_TABLE_NOT_FOUND,
            message=f"No table named '{table_name}' in '{db_name}'",
            details={"database": db_name, "table": table_name},
        )

    @classmethod
    def locator(cls, locator: str) -> "NotFoundError":
        return cls(
            code=ErrorCode.SCHEMA_LOCATOR_NOT_ROUTABLE,
            message=f"Locator does not address a known table: {locator}",
            details={"locator": locator},
        )


class StoreUnavailableError(ContractDbError):
    """Store or resolver I/O failure. Callers may retry."""

    @classmethod
    def from_exception(cls, operation: str, exc: BaseException) -> "StoreUnavailableError":
        return cls(
            code=ErrorCode.STORE_UNAVAILABLE,
            message=f"Store unavailable during {operation}: {exc}",
            retryable=True,
            details={"operation": operation, "reason": str(exc)},
        )


class StoreError(ContractDbError):
    """A DDL/DML statement failed to execute."""

    @classmethod
    def execution_failed(cls, sql: str, exc: BaseException) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_EXECUTION_FAILED,
            message=f"Statement failed: {exc}",
            details={"sql": sql, "reason": str(exc)},
        )


class WriteSetError(ContractDbError):
    """Write-set rejected before reaching the store."""

    @classmethod
    def missing_column(cls, table_name: str, column: str) -> "WriteSetError":
        return cls(
            code=ErrorCode.WRITESET_MISSING_COLUMN,
            message=f"Missing required column '{column}' for table '{table_name}'",
            details={"table": table_name, "column": column},
        )


class InternalError(ContractDbError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
