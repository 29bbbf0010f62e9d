"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides the schemas shared by most test modules.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of contractdb modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("contractdb"):
        del sys.modules[module_name]

from contractdb.config.models import LocatorConfig  # noqa: E402
from contractdb.schema.models import Column, DatabaseSchema, TableSchema, WildcardKind  # noqa: E402
from contractdb.schema.registry import Registry  # noqa: E402
from contractdb.schema.types import TypeTag  # noqa: E402

ITEMS_DDL = "CREATE TABLE items(_id INTEGER PRIMARY KEY, sku TEXT, qty INTEGER)"

GADGETS_DDL = (
    'CREATE TABLE gadgets(_id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, '
    '"unit price" REAL, weight REAL, in_stock INTEGER DEFAULT 1, grade TEXT, '
    'rank INTEGER, level INTEGER, flags INTEGER, photo BLOB)'
)

TAGS_DDL = "CREATE TABLE tags(slug TEXT PRIMARY KEY, label TEXT)"


@pytest.fixture
def items_table() -> TableSchema:
    """Minimal table: numeric id, one string and one integer column."""
    return TableSchema(
        name="items",
        ddl=ITEMS_DDL,
        columns=(Column("sku", TypeTag.STRING), Column("qty", TypeTag.INT32)),
    )


@pytest.fixture
def gadgets_table() -> TableSchema:
    """Table covering every supported tag plus one unsupported column."""
    return TableSchema(
        name="gadgets",
        ddl=GADGETS_DDL,
        columns=(
            Column("name", TypeTag.STRING),
            Column("unit price", TypeTag.FLOAT64),
            Column("weight", TypeTag.FLOAT32),
            Column("in_stock", TypeTag.BOOL),
            Column("grade", TypeTag.CHAR),
            Column("rank", TypeTag.INT64),
            Column("level", TypeTag.INT16),
            Column("flags", TypeTag.BYTE),
            Column("photo", "blob"),
        ),
        required_columns=frozenset({"name"}),
        default_sort_order="name",
    )


@pytest.fixture
def tags_table() -> TableSchema:
    """String-keyed table."""
    return TableSchema(
        name="tags",
        ddl=TAGS_DDL,
        columns=(Column("slug", TypeTag.STRING), Column("label", TypeTag.STRING)),
        id_field="slug",
        wildcard_kind=WildcardKind.STRING,
    )


@pytest.fixture
def locator_config() -> LocatorConfig:
    return LocatorConfig(scheme="scheme", authority_prefix="com.example")


@pytest.fixture
def shop_registry(
    items_table: TableSchema,
    gadgets_table: TableSchema,
    tags_table: TableSchema,
    locator_config: LocatorConfig,
) -> Registry:
    """Registry for database "shop" holding items, gadgets and tags."""
    schema = DatabaseSchema(name="shop", version=1, tables=[items_table, gadgets_table, tags_table])
    return Registry(schema, locator_config)
