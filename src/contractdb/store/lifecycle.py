"""Open a database and bring its tables to the registry's schema version."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from contractdb.store.migration import MigrationManager

if TYPE_CHECKING:
    from contractdb.schema.registry import Registry
    from contractdb.store.database import Database

logger = structlog.get_logger()


class LifecycleAction(StrEnum):
    CREATED = "created"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"
    OPENED = "opened"


class StoreLifecycle:
    """Compares the stored version with the schema version and runs the matching hook.

    The stored version lives in SQLite's ``user_version`` header; 0 means
    the file has never been initialised.
    """

    def __init__(self, database: Database, registry: Registry, manager: MigrationManager | None = None) -> None:
        self.database = database
        self.registry = registry
        self.manager = manager or MigrationManager(registry)

    def open(self) -> LifecycleAction:
        stored = self.database.user_version
        target = self.registry.version
        if stored == 0:
            self.manager.on_create(self.database)
            action = LifecycleAction.CREATED
        elif stored < target:
            self.manager.on_upgrade(self.database, stored, target)
            action = LifecycleAction.UPGRADED
        elif stored > target:
            self.manager.on_downgrade(self.database, stored, target)
            action = LifecycleAction.DOWNGRADED
        else:
            action = LifecycleAction.OPENED
        if stored != target:
            self.database.user_version = target
        logger.info(
            "store_opened",
            database=self.registry.name,
            stored_version=stored,
            version=target,
            action=str(action),
        )
        return action
