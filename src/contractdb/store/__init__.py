"""SQLite reference store: database, migrations, resolver, notifications."""

from contractdb.store.database import Database
from contractdb.store.guard import UpdateGuard
from contractdb.store.lifecycle import LifecycleAction, StoreLifecycle
from contractdb.store.migration import MigrationManager, MigrationStep
from contractdb.store.notify import ChangeNotifier
from contractdb.store.provider import ContractResolver

__all__ = [
    "ChangeNotifier",
    "ContractResolver",
    "Database",
    "LifecycleAction",
    "MigrationManager",
    "MigrationStep",
    "StoreLifecycle",
    "UpdateGuard",
]
