"""Locator value types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from contractdb.config.constants import (
    ACTION_SEPARATOR,
    MIME_CATEGORY_COLLECTION,
    MIME_CATEGORY_SINGLE,
)


class DataAction(StrEnum):
    """Change kind encoded in a notification locator's authority."""

    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def tag(self) -> str:
        """Authority prefix for this action ("" for NONE, else "<action>@")."""
        if self is DataAction.NONE:
            return ""
        return f"{self.value}{ACTION_SEPARATOR}"

    @classmethod
    def from_tag(cls, tag: str) -> DataAction | None:
        """Inverse of :attr:`tag`; accepts the tag with or without the separator."""
        name = tag.removesuffix(ACTION_SEPARATOR)
        if not name:
            return cls.NONE
        try:
            action = cls(name)
        except ValueError:
            return None
        return None if action is cls.NONE else action


class Multiplicity(StrEnum):
    """Whether a MIME type describes a set of records or a single one."""

    COLLECTION = "collection"
    SINGLE = "single"

    @property
    def category(self) -> str:
        if self is Multiplicity.COLLECTION:
            return MIME_CATEGORY_COLLECTION
        return MIME_CATEGORY_SINGLE


@dataclass(frozen=True)
class ParsedLocator:
    """A locator split into its routing parts."""

    scheme: str
    authority: str
    table: str
    id_segment: str | None = None
    action: DataAction = DataAction.NONE
    query: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_row(self) -> bool:
        """True when the locator addresses a single record."""
        return self.id_segment is not None

    @property
    def multiplicity(self) -> Multiplicity:
        return Multiplicity.SINGLE if self.is_row else Multiplicity.COLLECTION
