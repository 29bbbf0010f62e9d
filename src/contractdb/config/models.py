"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONTRACTDB__SECTION__KEY)
3. YAML config file passed to load_config()
4. Built-in defaults (this file)

Environment Variable Format:
    CONTRACTDB__<SECTION>__<KEY>=<VALUE>

Examples:
    CONTRACTDB__LOGGING__LEVEL=DEBUG
    CONTRACTDB__LOCATOR__AUTHORITY_PREFIX=com.example
    CONTRACTDB__DATABASE__MAX_RETRIES=5
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CONTRACTDB__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every resolver call.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LocatorConfig(BaseModel):
    """Resource locator addressing scheme.

    Env vars:
        CONTRACTDB__LOCATOR__SCHEME: Locator scheme (default: content)
        CONTRACTDB__LOCATOR__AUTHORITY_PREFIX: Prefix joined to the db name
        CONTRACTDB__LOCATOR__MIME_SUBTYPE_PREFIX: Vendor prefix for MIME subtypes
    """

    scheme: str = Field(
        default="content",
        description="Scheme part of every locator.",
    )
    authority_prefix: str = Field(
        default="org.contractdb.provider",
        description="Authority is '<authority_prefix>.<db name>'. "
        "Changing it changes every persisted locator.",
    )
    mime_subtype_prefix: str = Field(
        default="vnd.contractdb",
        description="MIME subtype is '<prefix>.<db name>.<table name>'.",
    )

    @field_validator("scheme", "authority_prefix", "mime_subtype_prefix")
    @classmethod
    def validate_no_separators(cls, v: str) -> str:
        if not v or any(ch in v for ch in "/@:"):
            raise ValueError(f"Must be non-empty and free of '/', '@' and ':': {v!r}")
        return v


class DatabaseConfig(BaseModel):
    """Reference SQLite store configuration.

    Env vars:
        CONTRACTDB__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
        CONTRACTDB__DATABASE__MAX_RETRIES: Max retry attempts for locked DB
    """

    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks. "
        "RISK: Too low causes failures under contention; too high delays errors.",
    )
    max_retries: int = Field(
        default=3,
        description="Max retry attempts for locked database errors.",
    )
    retry_base_delay_sec: float = Field(
        default=0.1,
        description="Base delay between retries (exponential backoff).",
    )
    retry_max_delay_sec: float = Field(
        default=2.0,
        description="Upper bound for a single backoff delay.",
    )

    @field_validator("busy_timeout_ms", "max_retries")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Must be >= 0, got {v}")
        return v


class ContractDbConfig(BaseModel):
    """Root configuration for contractdb."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
