"""Tests for opening a store at the schema version."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from contractdb.schema.models import DatabaseSchema, TableSchema
from contractdb.schema.registry import Registry
from contractdb.store.database import Database
from contractdb.store.lifecycle import LifecycleAction, StoreLifecycle

NOTES_DDL = "CREATE TABLE notes(_id INTEGER PRIMARY KEY, body TEXT)"


def _registry(version: int) -> Registry:
    return Registry(DatabaseSchema(name="notes", version=version, tables=[TableSchema(name="notes", ddl=NOTES_DDL)]))


class TestStoreLifecycle:
    def test_fresh_file_is_created(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "n.db")
        try:
            action = StoreLifecycle(db, _registry(2)).open()
            assert action is LifecycleAction.CREATED
            assert db.user_version == 2
            columns, _ = db.query("SELECT * FROM notes")
            assert columns == ["_id", "body"]
        finally:
            db.close()

    def test_reopen_same_version_does_nothing(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "n.db")
        try:
            StoreLifecycle(db, _registry(1)).open()
            db.execute("INSERT INTO notes(body) VALUES ('kept')")

            assert StoreLifecycle(db, _registry(1)).open() is LifecycleAction.OPENED

            _, rows = db.query("SELECT body FROM notes")
            assert rows == [{"body": "kept"}]
        finally:
            db.close()

    def test_newer_schema_upgrades(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "n.db")
        try:
            StoreLifecycle(db, _registry(1)).open()
            db.execute("INSERT INTO notes(body) VALUES ('lost')")

            assert StoreLifecycle(db, _registry(2)).open() is LifecycleAction.UPGRADED

            _, rows = db.query("SELECT body FROM notes")
            assert rows == []
            assert db.user_version == 2
        finally:
            db.close()

    def test_older_schema_downgrades(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "n.db")
        try:
            StoreLifecycle(db, _registry(3)).open()
            manager = MagicMock()

            assert StoreLifecycle(db, _registry(2), manager).open() is LifecycleAction.DOWNGRADED

            manager.on_downgrade.assert_called_once_with(db, 3, 2)
            assert db.user_version == 2
        finally:
            db.close()

    def test_upgrade_uses_supplied_manager(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "n.db")
        try:
            StoreLifecycle(db, _registry(1)).open()
            manager = MagicMock()

            StoreLifecycle(db, _registry(4), manager).open()

            manager.on_upgrade.assert_called_once_with(db, 1, 4)
            manager.on_create.assert_not_called()
        finally:
            db.close()
