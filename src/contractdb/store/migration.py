"""Schema migration hooks.

Default policy is destructive: an upgrade drops every registered table and
recreates it from its DDL, and a downgrade does the same. Callers that need
to keep data register a step per target version; when every version in
``(old, new]`` has one, the steps run in ascending order instead.

Any failing statement aborts the hook and propagates as StoreError.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from contractdb.record.resolver import RelationalStore
    from contractdb.schema.registry import Registry

logger = structlog.get_logger()

MigrationStep = Callable[["RelationalStore"], None]


class MigrationManager:
    """Creates, upgrades, downgrades and empties the tables of one registry."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry
        self._steps: dict[int, MigrationStep] = {}

    def add_step(self, version: int, step: MigrationStep) -> MigrationManager:
        """Register the step that migrates a store from ``version - 1`` to ``version``."""
        if version < 2:
            raise ValueError(f"Migration steps target versions >= 2, got {version}")
        if version in self._steps:
            raise ValueError(f"A migration step for version {version} is already registered")
        self._steps[version] = step
        return self

    def steps_between(self, old_version: int, new_version: int) -> list[MigrationStep] | None:
        """Steps covering ``(old, new]`` in order, or None if any is missing."""
        if new_version <= old_version:
            return None
        versions = range(old_version + 1, new_version + 1)
        if any(v not in self._steps for v in versions):
            return None
        return [self._steps[v] for v in versions]

    def on_create(self, store: RelationalStore) -> None:
        tables = self.registry.all_tables()
        for table in tables:
            store.execute(table.ddl)
        logger.info("schema_create", database=self.registry.name, tables=len(tables))

    def recreate_all(self, store: RelationalStore) -> None:
        """Drop and recreate every table, in registration order."""
        for table in self.registry.all_tables():
            store.execute(table.drop_sql())
            store.execute(table.ddl)

    def on_upgrade(self, store: RelationalStore, old_version: int, new_version: int) -> None:
        steps = self.steps_between(old_version, new_version)
        if steps is None:
            logger.warning(
                "schema_upgrade",
                database=self.registry.name,
                old_version=old_version,
                new_version=new_version,
                strategy="recreate",
            )
            self.recreate_all(store)
            return
        logger.info(
            "schema_upgrade",
            database=self.registry.name,
            old_version=old_version,
            new_version=new_version,
            strategy="steps",
            steps=len(steps),
        )
        for step in steps:
            step(store)

    def on_downgrade(self, store: RelationalStore, old_version: int, new_version: int) -> None:
        logger.warning(
            "schema_downgrade",
            database=self.registry.name,
            old_version=old_version,
            new_version=new_version,
        )
        self.on_upgrade(store, old_version, new_version)

    def empty_store(self, store: RelationalStore) -> None:
        """Delete every row of every table, keeping the tables."""
        for table in self.registry.all_tables():
            store.execute(table.empty_sql())
        logger.info("store_emptied", database=self.registry.name)
