"""Config module exports."""

from contractdb.config.loader import ContractDbSettings, load_config
from contractdb.config.models import (
    ContractDbConfig,
    DatabaseConfig,
    LocatorConfig,
    LoggingConfig,
    LogOutputConfig,
)

__all__ = [
    "load_config",
    "ContractDbConfig",
    "ContractDbSettings",
    "DatabaseConfig",
    "LocatorConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
