"""Tests for the record marshalling engine.

Resolvers are unittest.mock fakes; the SQLite-backed resolver is covered in
tests/store and tests/integration.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from contractdb.config.constants import ORIGINATING_LOCATOR_KEY
from contractdb.core.errors import StoreUnavailableError
from contractdb.record.cursor import RowsCursor
from contractdb.record.envelope import KeyValueEnvelope
from contractdb.record.record import Record
from contractdb.schema.models import Column, DatabaseSchema, TableSchema
from contractdb.schema.registry import Registry
from contractdb.schema.types import TypeTag


@pytest.fixture
def gadget(shop_registry: Registry) -> Record:
    """A gadget with every supported field populated."""
    record = shop_registry.new_record("gadgets")
    record.set_field("_id", 5)
    record.set_field("name", "widget")
    record.set_field("unit_price", 9.75)
    record.set_field("weight", 0.5)
    record.set_field("in_stock", True)
    record.set_field("grade", "B")
    record.set_field("rank", 2**40)
    record.set_field("level", -3)
    record.set_field("flags", 7)
    return record


def _cursor(row: dict) -> RowsCursor:
    return RowsCursor([row])


class TestValueAccess:
    """Direct field/column access."""

    def test_unset_by_default(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items")
        assert record.values() == {}
        assert record.id_value() is None
        assert record.locator() is None
        assert record["sku"] is None

    def test_set_column_maps_spaces(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("gadgets")
        record.set_column("unit price", 3)
        assert record.get("unit_price") == 3.0
        assert record.is_set("unit_price")

    def test_set_field_coerces(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items")
        record["qty"] = "12"
        assert record["qty"] == 12

    def test_set_field_rejects_invalid_value(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items")
        with pytest.raises(ValueError):
            record.set_field("qty", "lots")

    def test_unknown_names_raise_key_error(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items")
        with pytest.raises(KeyError):
            record.set_field("nope", 1)
        with pytest.raises(KeyError):
            record.set_column("nope", 1)
        with pytest.raises(KeyError):
            record["nope"]

    def test_none_unsets(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items").set_field("sku", "a")
        record.set_field("sku", None)
        assert not record.is_set("sku")
        record.set_field("sku", "b").unset("sku")
        assert not record.is_set("sku")

    def test_contains_checks_mapping(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("gadgets")
        assert "unit_price" in record
        assert "photo" in record
        assert "unit price" not in record

    def test_locator_and_mime(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items").set_field("_id", 42)
        assert record.locator() == "scheme://com.example.shop/items/42"
        assert record.mime_type() == "item/vnd.contractdb.shop.items"

    def test_string_keyed_id(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("tags").set_field("slug", "red")
        assert record.id_value() == "red"
        assert record.locator() == "scheme://com.example.shop/tags/red"


class TestClear:
    def test_zero_values(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("gadgets").clear()
        assert record.values() == {
            "_id": 0,
            "name": "",
            "unit_price": 0.0,
            "weight": 0.0,
            "in_stock": False,
            "grade": "\0",
            "rank": 0,
            "level": 0,
            "flags": 0,
        }
        assert not record.is_set("photo")

    def test_clear_drops_unsupported_values(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("gadgets").set_field("photo", b"\x89PNG")
        record.clear()
        assert not record.is_set("photo")


class TestFromRow:
    """Reading a cursor row."""

    def test_reads_every_supported_tag(self, shop_registry: Registry) -> None:
        row = {
            "_id": 5,
            "name": "widget",
            "unit price": 9.75,
            "weight": 0.5,
            "in_stock": 1,
            "grade": "B",
            "rank": 2**40,
            "level": -3,
            "flags": 7,
            "photo": b"\x00",
        }
        cursor = _cursor(row)
        cursor.next()
        record = shop_registry.new_record("gadgets").from_row(cursor)
        assert record.values() == {
            "_id": 5,
            "name": "widget",
            "unit_price": 9.75,
            "weight": 0.5,
            "in_stock": True,
            "grade": "B",
            "rank": 2**40,
            "level": -3,
            "flags": 7,
        }

    def test_absent_columns_left_untouched(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items").set_field("sku", "keep")
        cursor = _cursor({"_id": 1, "qty": 4})
        cursor.next()
        record.from_row(cursor)
        assert record.values() == {"_id": 1, "qty": 4, "sku": "keep"}

    def test_null_and_mistyped_become_unset(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("gadgets").set_field("rank", 1).set_field("level", 1)
        cursor = _cursor({"name": None, "rank": "not a number", "level": 70000, "grade": ""})
        cursor.next()
        record.from_row(cursor)
        assert not record.is_set("name")
        assert not record.is_set("rank")
        assert not record.is_set("level")
        assert not record.is_set("grade")

    def test_never_raises_for_bad_cells(self, shop_registry: Registry) -> None:
        cursor = _cursor({"unit price": object(), "in_stock": "yes", "weight": "heavy"})
        cursor.next()
        record = shop_registry.new_record("gadgets").from_row(cursor)
        assert record.values() == {}


class TestEnvelope:
    """Envelope marshalling."""

    def test_writes_every_supported_field(self, gadget: Record) -> None:
        envelope = gadget.to_envelope()
        assert envelope.get("unit_price") == 9.75
        assert envelope.kind_of("in_stock") == "bool"
        assert "photo" not in envelope
        assert envelope.get(ORIGINATING_LOCATOR_KEY) == "scheme://com.example.shop/gadgets/5"

    def test_unset_fields_written_as_null(self, shop_registry: Registry) -> None:
        envelope = shop_registry.new_record("items").set_field("sku", "a").to_envelope()
        assert "qty" in envelope
        assert envelope.get("qty") is None
        assert ORIGINATING_LOCATOR_KEY not in envelope

    def test_extra_entries_carried(self, gadget: Record) -> None:
        extra = KeyValueEnvelope().put("request", TypeTag.STRING, "r-1").put("name", TypeTag.STRING, "x")
        envelope = gadget.to_envelope(extra)
        assert envelope.get("request") == "r-1"
        assert envelope.get("name") == "widget"
        assert "name" in extra and extra.get("name") == "x"

    def test_round_trip(self, gadget: Record, shop_registry: Registry) -> None:
        """fromEnvelope(toEnvelope(r)).toEnvelope() == toEnvelope(r)."""
        envelope = gadget.to_envelope()
        copy = shop_registry.new_record("gadgets").from_envelope(envelope)
        assert copy.to_envelope() == envelope
        assert copy == gadget

    def test_round_trip_through_bytes(self, gadget: Record, shop_registry: Registry) -> None:
        transported = KeyValueEnvelope.from_bytes(gadget.to_envelope().to_bytes())
        assert shop_registry.new_record("gadgets").from_envelope(transported) == gadget

    def test_from_envelope_by_field_name(self, shop_registry: Registry) -> None:
        envelope = KeyValueEnvelope().put("unit price", TypeTag.FLOAT64, 1.0).put("unit_price", TypeTag.FLOAT64, 2.0)
        record = shop_registry.new_record("gadgets").from_envelope(envelope)
        assert record.get("unit_price") == 2.0

    def test_from_envelope_mistyped_becomes_unset(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items").set_field("qty", 1)
        record.from_envelope(KeyValueEnvelope().put("qty", TypeTag.STRING, "many"))
        assert not record.is_set("qty")


class TestFromRecord:
    def test_copies_by_field_name_across_tables(self, shop_registry: Registry) -> None:
        item = shop_registry.new_record("items").set_field("_id", 3).set_field("sku", "A-1").set_field("qty", 2)
        tag = shop_registry.new_record("tags").set_field("label", "keep")
        tag.from_record(item)
        assert tag.values() == {"label": "keep"}

        other_items = shop_registry.new_record("items").from_record(item)
        assert other_items == item

    def test_unset_source_fields_unset_target(self, shop_registry: Registry) -> None:
        source = shop_registry.new_record("items").set_field("sku", "x")
        target = shop_registry.new_record("items").set_field("qty", 9)
        target.from_record(source)
        assert target.values() == {"sku": "x"}

    def test_converts_to_target_tags(self, shop_registry: Registry) -> None:
        loose = TableSchema(name="loose", ddl="", columns=(Column("qty", TypeTag.STRING), Column("sku")))
        registry = Registry(DatabaseSchema(name="other", tables=[loose]))
        source = registry.new_record("loose").set_field("qty", "12").set_field("sku", "A")
        target = shop_registry.new_record("items").from_record(source)
        assert target.values() == {"qty": 12, "sku": "A"}

        source.set_field("qty", "a dozen")
        target.from_record(source)
        assert not target.is_set("qty")


class TestWriteSet:
    def test_keyed_by_column(self, gadget: Record) -> None:
        write_set = gadget.to_write_set()
        assert write_set["unit price"] == 9.75
        assert write_set["in_stock"] == 1
        assert "photo" not in write_set

    def test_omit_nulls(self, shop_registry: Registry) -> None:
        record = shop_registry.new_record("items").set_field("sku", "a")
        assert record.to_write_set(omit_nulls=True) == {"sku": "a"}
        assert record.to_write_set(omit_nulls=False) == {"_id": None, "sku": "a", "qty": None}


class TestCrud:
    """CRUD delegation to a resolver."""

    def test_create_applies_defaults_and_inserts(self) -> None:
        table = TableSchema(
            name="items",
            ddl="",
            columns=(Column("sku"), Column("qty", TypeTag.INT32)),
            default_value_policy=lambda ws: {**ws, "qty": ws.get("qty", 1)},
        )
        registry = Registry(DatabaseSchema(name="shop", tables=[table]))
        resolver = MagicMock()
        resolver.insert.return_value = "content://org.contractdb.provider.shop/items/1"

        record = registry.new_record("items").set_field("sku", "A")
        result = record.create(resolver)

        assert result == "content://org.contractdb.provider.shop/items/1"
        resolver.insert.assert_called_once_with(
            "content://org.contractdb.provider.shop/items", {"sku": "A", "qty": 1}
        )

    def test_create_and_reload(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        resolver.insert.return_value = "scheme://com.example.shop/items/9"
        resolver.query.return_value = RowsCursor([{"_id": 9, "sku": "A", "qty": 0}])

        record = shop_registry.new_record("items").set_field("sku", "A")
        assert record.create_and_reload(resolver) == "scheme://com.example.shop/items/9"

        resolver.query.assert_called_once_with("scheme://com.example.shop/items/9")
        assert record.values() == {"_id": 9, "sku": "A", "qty": 0}

    def test_create_and_reload_without_locator_skips_query(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        resolver.insert.return_value = None
        assert shop_registry.new_record("items").create_and_reload(resolver) is None
        resolver.query.assert_not_called()

    def test_load_by_id_found_closes_cursor(self, shop_registry: Registry) -> None:
        cursor = MagicMock()
        cursor.next.return_value = True
        cursor.has_column.side_effect = lambda name: name == "sku"
        cursor.get_string.return_value = "A-1"
        resolver = MagicMock()
        resolver.query.return_value = cursor

        record = shop_registry.new_record("items")
        assert record.load_by_id(resolver, 4) is True

        resolver.query.assert_called_once_with("scheme://com.example.shop/items/4")
        assert record.get("sku") == "A-1"
        cursor.close.assert_called_once()

    def test_load_not_found_closes_cursor(self, shop_registry: Registry) -> None:
        cursor = MagicMock()
        cursor.next.return_value = False
        resolver = MagicMock()
        resolver.query.return_value = cursor

        assert shop_registry.new_record("items").load_by_locator(resolver, "scheme://x/items/1") is False
        cursor.close.assert_called_once()

    def test_load_error_still_closes_cursor(self, shop_registry: Registry) -> None:
        cursor = MagicMock()
        cursor.next.side_effect = StoreUnavailableError.from_exception("next", OSError("gone"))
        resolver = MagicMock()
        resolver.query.return_value = cursor

        with pytest.raises(StoreUnavailableError):
            shop_registry.new_record("items").load_by_id(resolver, 1)
        cursor.close.assert_called_once()

    def test_load_with_no_cursor(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        resolver.query.return_value = None
        assert shop_registry.new_record("items").load_by_id(resolver, 1) is False

    def test_update_excludes_identity(self, gadget: Record) -> None:
        resolver = MagicMock()
        resolver.update.return_value = 1

        assert gadget.update(resolver) is True

        locator, write_set = resolver.update.call_args.args
        assert locator == "scheme://com.example.shop/gadgets/5"
        assert "_id" not in write_set
        assert write_set["name"] == "widget"

    def test_update_excludes_custom_id_column(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        resolver.update.return_value = 1
        record = shop_registry.new_record("tags").set_field("slug", "red").set_field("label", "Red")

        record.update(resolver)

        _, write_set = resolver.update.call_args.args
        assert write_set == {"label": "Red"}

    def test_update_without_id_skips_resolver(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        assert shop_registry.new_record("items").set_field("sku", "a").update(resolver) is False
        resolver.update.assert_not_called()

    def test_update_no_rows(self, gadget: Record) -> None:
        resolver = MagicMock()
        resolver.update.return_value = 0
        assert gadget.update(resolver) is False

    def test_delete_and_delete_self(self, gadget: Record) -> None:
        resolver = MagicMock()
        resolver.delete.return_value = 1
        assert gadget.delete(resolver, 8) is True
        resolver.delete.assert_called_with("scheme://com.example.shop/gadgets/8")
        assert gadget.delete_self(resolver) is True
        resolver.delete.assert_called_with("scheme://com.example.shop/gadgets/5")

    def test_delete_self_without_id(self, shop_registry: Registry) -> None:
        resolver = MagicMock()
        assert shop_registry.new_record("items").delete_self(resolver) is False
        resolver.delete.assert_not_called()

    def test_resolver_errors_propagate(self, gadget: Record) -> None:
        resolver = MagicMock()
        resolver.update.side_effect = StoreUnavailableError.from_exception("update", OSError("gone"))
        with pytest.raises(StoreUnavailableError):
            gadget.update(resolver)
