"""Core module exports."""

from contractdb.core.errors import (
    ConfigError,
    ContractDbError,
    DuplicateTableError,
    ErrorCode,
    InternalError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    WriteSetError,
)
from contractdb.core.logging import configure_logging, get_logger

__all__ = [
    # Errors
    "ConfigError",
    "ContractDbError",
    "DuplicateTableError",
    "ErrorCode",
    "InternalError",
    "NotFoundError",
    "StoreError",
    "StoreUnavailableError",
    "WriteSetError",
    # Logging
    "configure_logging",
    "get_logger",
]
