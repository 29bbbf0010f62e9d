"""Record marshalling engine.

A :class:`Record` is bound to one table and holds a value per mapped field.
A field missing from ``_values`` is *unset*. Values move between records,
row cursors, envelopes and write-sets through the table's precomputed
column/field map and tag-keyed dispatch tables.

Marshalling in (``from_row``, ``from_envelope``, ``from_record``) never
raises for bad source data: absent columns stay untouched, mistyped values
become unset, and fields with unsupported tags are skipped. CRUD helpers
delegate to a :class:`~contractdb.record.resolver.Resolver` and let its
errors propagate.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import closing
from typing import TYPE_CHECKING, Any

import structlog

from contractdb.config.constants import ORIGINATING_LOCATOR_KEY
from contractdb.locator.models import Multiplicity
from contractdb.record.envelope import KeyValueEnvelope
from contractdb.schema.types import TypeTag, coerce, to_storage, zero_value

if TYPE_CHECKING:
    from contractdb.record.resolver import Resolver, RowCursor
    from contractdb.schema.models import MappedField, TableSchema, WriteSet
    from contractdb.schema.registry import TableInfo

logger = structlog.get_logger()


def _read_string(cursor: RowCursor, column: str) -> Any:
    return cursor.get_string(column)


def _read_int(cursor: RowCursor, column: str) -> Any:
    return cursor.get_int(column)


def _read_float(cursor: RowCursor, column: str) -> Any:
    return cursor.get_float(column)


# Typed cursor accessor per tag. The raw result is then coerced, which
# range-checks narrow integers and rounds float32.
_ROW_READERS: dict[TypeTag, Callable[[RowCursor, str], Any]] = {
    TypeTag.STRING: _read_string,
    TypeTag.CHAR: _read_string,
    TypeTag.INT64: _read_int,
    TypeTag.INT32: _read_int,
    TypeTag.INT16: _read_int,
    TypeTag.BYTE: _read_int,
    TypeTag.BOOL: _read_int,
    TypeTag.FLOAT32: _read_float,
    TypeTag.FLOAT64: _read_float,
}


class Record:
    """One row of a registered table, in memory."""

    def __init__(self, info: TableInfo) -> None:
        self.info = info
        self._values: dict[str, Any] = {}

    @property
    def table(self) -> TableSchema:
        return self.info.table

    def __repr__(self) -> str:
        return f"Record({self.table.name!r}, {self._values!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.table.name == other.table.name and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    # -- value access -----------------------------------------------------

    def _require_field(self, field_name: str) -> MappedField:
        mapped = self.table.mapped_field(field_name)
        if mapped is None:
            raise KeyError(f"Table '{self.table.name}' has no field '{field_name}'")
        return mapped

    def _assign(self, mapped: MappedField, raw: Any) -> None:
        value = coerce(mapped.tag, raw)
        if value is None:
            self._values.pop(mapped.field, None)
        else:
            self._values[mapped.field] = value

    def set_field(self, field_name: str, value: Any) -> Record:
        """Set a field by name. None unsets it.

        Raises KeyError for unknown fields and ValueError when ``value``
        cannot be held by the field's tag. Fields with unsupported tags
        store the value as given.
        """
        mapped = self._require_field(field_name)
        if value is None:
            self._values.pop(mapped.field, None)
        elif not mapped.supported:
            self._values[mapped.field] = value
        else:
            coerced = coerce(mapped.tag, value)
            if coerced is None:
                raise ValueError(
                    f"Value {value!r} is not valid for {mapped.tag} field '{field_name}'"
                )
            self._values[mapped.field] = coerced
        return self

    def set_column(self, column_name: str, value: Any) -> Record:
        mapped = self.table.field_for_column(column_name)
        if mapped is None:
            raise KeyError(f"Table '{self.table.name}' has no column '{column_name}'")
        return self.set_field(mapped.field, value)

    def get(self, field_name: str, default: Any = None) -> Any:
        return self._values.get(field_name, default)

    def is_set(self, field_name: str) -> bool:
        return field_name in self._values

    def unset(self, field_name: str) -> Record:
        self._values.pop(field_name, None)
        return self

    def values(self) -> dict[str, Any]:
        """Set fields only, keyed by field name."""
        return dict(self._values)

    def __getitem__(self, field_name: str) -> Any:
        self._require_field(field_name)
        return self._values.get(field_name)

    def __setitem__(self, field_name: str, value: Any) -> None:
        self.set_field(field_name, value)

    def __contains__(self, field_name: object) -> bool:
        return isinstance(field_name, str) and self.table.mapped_field(field_name) is not None

    def id_value(self) -> Any:
        return self._values.get(self.table.id_field_name)

    def locator(self) -> str | None:
        """This record's own locator, or None while the id is unset."""
        record_id = self.id_value()
        if record_id is None:
            return None
        return self.info.locator_for(record_id)

    def mime_type(self) -> str:
        return self.info.mime_type(Multiplicity.SINGLE)

    def clear(self) -> Record:
        """Reset every mapped field to its tag's zero value."""
        self._values.clear()
        for mapped in self.table.fields:
            zero = zero_value(mapped.tag)
            if zero is not None:
                self._values[mapped.field] = zero
        return self

    # -- marshalling ------------------------------------------------------

    def from_row(self, cursor: RowCursor) -> Record:
        """Read the cursor's current row. Absent columns are left untouched."""
        for mapped in self.table.fields:
            if not mapped.supported or not cursor.has_column(mapped.column):
                continue
            try:
                raw = _ROW_READERS[mapped.tag](cursor, mapped.column)
            except (TypeError, ValueError, OverflowError):
                raw = None
            self._assign(mapped, raw)
        return self

    def to_envelope(self, extra: KeyValueEnvelope | None = None) -> KeyValueEnvelope:
        """Write every supported field (unset ones as null) into an envelope.

        Entries of ``extra`` are carried along; record fields win on clashes.
        When the id is set the record's locator is added under
        ``ORIGINATING_LOCATOR_KEY``.
        """
        envelope = extra.copy() if extra is not None else KeyValueEnvelope()
        for mapped in self.table.fields:
            if mapped.supported:
                envelope.put(mapped.field, mapped.tag, self._values.get(mapped.field))
        own_locator = self.locator()
        if own_locator is not None:
            envelope.put_locator(ORIGINATING_LOCATOR_KEY, own_locator)
        return envelope

    def from_envelope(self, envelope: KeyValueEnvelope) -> Record:
        for mapped in self.table.fields:
            if mapped.supported and mapped.field in envelope:
                self._assign(mapped, envelope.get(mapped.field))
        return self

    def from_record(self, other: Record) -> Record:
        """Copy ``other``'s fields by name; fields unknown here are ignored."""
        for source in other.table.fields:
            target = self.table.mapped_field(source.field)
            if target is None or not target.supported:
                continue
            self._assign(target, other._values.get(source.field))
        return self

    def to_write_set(self, omit_nulls: bool = False) -> WriteSet:
        """Column name -> storage value for every supported field."""
        write_set: WriteSet = {}
        for mapped in self.table.fields:
            if not mapped.supported:
                continue
            value = self._values.get(mapped.field)
            if value is None:
                if omit_nulls:
                    continue
                write_set[mapped.column] = None
            else:
                write_set[mapped.column] = to_storage(mapped.tag, value)
        return write_set

    # -- CRUD through a resolver -----------------------------------------

    def create(self, resolver: Resolver) -> str | None:
        """Insert this record; returns the new row's locator."""
        write_set = self.table.apply_defaults(self.to_write_set(omit_nulls=True))
        new_locator = resolver.insert(self.info.collection_locator(), write_set)
        logger.debug("record_create", table=self.table.name, locator=new_locator)
        return new_locator

    def create_and_reload(self, resolver: Resolver) -> str | None:
        """Insert, then re-read the stored row so defaults and the id are populated."""
        new_locator = self.create(resolver)
        if new_locator is not None:
            self.load_by_locator(resolver, new_locator)
        return new_locator

    def load_by_locator(self, resolver: Resolver, locator: str) -> bool:
        cursor = resolver.query(locator)
        if cursor is None:
            return False
        with closing(cursor):
            if not cursor.next():
                return False
            self.from_row(cursor)
        return True

    def load_by_id(self, resolver: Resolver, record_id: Any) -> bool:
        return self.load_by_locator(resolver, self.info.locator_for(record_id))

    def update(self, resolver: Resolver) -> bool:
        """Write all fields except the id back to this record's row."""
        own_locator = self.locator()
        if own_locator is None:
            return False
        write_set = self.to_write_set(omit_nulls=False)
        write_set.pop(self.table.id_field, None)
        write_set.pop(self.table.id_field_name, None)
        return resolver.update(own_locator, write_set) > 0

    def delete(self, resolver: Resolver, record_id: Any) -> bool:
        return resolver.delete(self.info.locator_for(record_id)) > 0

    def delete_self(self, resolver: Resolver) -> bool:
        record_id = self.id_value()
        if record_id is None:
            return False
        return self.delete(resolver, record_id)
