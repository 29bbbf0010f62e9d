"""Typed key/value envelope used to hand records across process boundaries.

Each entry carries a kind (a TypeTag value or ``"locator"``) next to its
value, so a receiver can restore typed values without knowing the table.
Entries whose value is None are kept; they mark a field as explicitly unset.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any

from contractdb.config.constants import ENVELOPE_LOCATOR_KIND
from contractdb.schema.types import TypeTag

_KINDS = frozenset({*(tag.value for tag in TypeTag), ENVELOPE_LOCATOR_KIND})


class KeyValueEnvelope:
    """Ordered mapping of key -> (kind, value)."""

    def __init__(self, entries: Mapping[str, tuple[str, Any]] | None = None) -> None:
        self._entries: dict[str, tuple[str, Any]] = {}
        for key, (kind, value) in (entries or {}).items():
            self._put(key, kind, value)

    def _put(self, key: str, kind: str, value: Any) -> None:
        if kind not in _KINDS:
            raise ValueError(f"Unknown envelope entry kind: {kind!r}")
        self._entries[key] = (str(kind), value)

    def put(self, key: str, tag: TypeTag, value: Any) -> KeyValueEnvelope:
        self._put(key, TypeTag(tag).value, value)
        return self

    def put_locator(self, key: str, locator: str | None) -> KeyValueEnvelope:
        self._put(key, ENVELOPE_LOCATOR_KIND, locator)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        return default if entry is None else entry[1]

    def kind_of(self, key: str) -> str | None:
        entry = self._entries.get(key)
        return None if entry is None else entry[0]

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def update(self, other: KeyValueEnvelope) -> None:
        self._entries.update(other._entries)

    def copy(self) -> KeyValueEnvelope:
        clone = KeyValueEnvelope()
        clone._entries = dict(self._entries)
        return clone

    def keys(self) -> list[str]:
        return list(self._entries)

    def items(self) -> Iterator[tuple[str, Any]]:
        for key, (_, value) in self._entries.items():
            yield key, value

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyValueEnvelope):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"KeyValueEnvelope({self._entries!r})"

    # -- wire format ----------------------------------------------------

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {key: {"kind": kind, "value": value} for key, (kind, value) in self._entries.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> KeyValueEnvelope:
        """Rebuild an envelope from :meth:`to_dict` output.

        Raises ValueError when the payload is not in envelope wire format.
        """
        envelope = cls()
        for key, entry in data.items():
            if not isinstance(entry, Mapping) or "kind" not in entry:
                raise ValueError(f"Malformed envelope entry for key {key!r}")
            envelope._put(str(key), entry["kind"], entry.get("value"))
        return envelope

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str | bytes) -> KeyValueEnvelope:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Envelope payload must be a JSON object")
        return cls.from_dict(data)

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> KeyValueEnvelope:
        return cls.from_json(data.decode("utf-8"))
