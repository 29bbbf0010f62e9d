"""Type tags and value coercion for mapped columns.

Every mapped column carries exactly one :class:`TypeTag`. The tag drives
marshalling through tag-keyed dispatch tables: coercion of raw source values
(row cells, envelope entries, other records), zero values for ``clear()``,
and typed cursor accessors.

Coercion is permissive by contract: a raw value that cannot be represented
under the tag yields ``None`` ("unset") instead of raising.
"""

from __future__ import annotations

import math
import struct
from collections.abc import Callable
from enum import StrEnum
from typing import Any


class TypeTag(StrEnum):
    """Primitive value kinds understood by the marshalling engine."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"
    CHAR = "char"
    BYTE = "byte"
    INT16 = "int16"


_INT_RANGES: dict[TypeTag, tuple[int, int]] = {
    TypeTag.BYTE: (-(2**7), 2**7 - 1),
    TypeTag.INT16: (-(2**15), 2**15 - 1),
    TypeTag.INT32: (-(2**31), 2**31 - 1),
    TypeTag.INT64: (-(2**63), 2**63 - 1),
}

# Python types that map onto a tag when a column is declared by type.
# bool must be checked before int (bool is an int subclass).
_PYTHON_TYPE_TAGS: tuple[tuple[type, TypeTag], ...] = (
    (bool, TypeTag.BOOL),
    (int, TypeTag.INT64),
    (float, TypeTag.FLOAT64),
    (str, TypeTag.STRING),
)


def resolve_tag(declared: TypeTag | str | type | None) -> TypeTag | None:
    """Resolve a column declaration to a tag.

    Accepts a TypeTag, its string value, or a Python type. Anything else
    (including unknown strings such as ``"blob"``) resolves to ``None``,
    meaning the column is mapped but unsupported and is skipped by
    marshalling.
    """
    if isinstance(declared, TypeTag):
        return declared
    if isinstance(declared, str):
        try:
            return TypeTag(declared.lower())
        except ValueError:
            return None
    if isinstance(declared, type):
        for py_type, tag in _PYTHON_TYPE_TAGS:
            if issubclass(declared, py_type):
                return tag
    return None


def _to_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _make_int_coercer(tag: TypeTag) -> Callable[[Any], int | None]:
    low, high = _INT_RANGES[tag]

    def coerce(raw: Any) -> int | None:
        value = _to_int(raw)
        if value is None or not (low <= value <= high):
            return None
        return value

    return coerce


def _to_float(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def _coerce_float32(raw: Any) -> float | None:
    value = _to_float(raw)
    if value is None:
        return None
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except (OverflowError, struct.error):
        return None


def _coerce_string(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    return None


_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no", ""})


def _coerce_bool(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        # Stored as INTEGER 0/1; anything positive counts as set
        return raw > 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def _coerce_char(raw: Any) -> str | None:
    if isinstance(raw, str) and raw:
        return raw[0]
    return None


_COERCERS: dict[TypeTag, Callable[[Any], Any]] = {
    TypeTag.STRING: _coerce_string,
    TypeTag.INT32: _make_int_coercer(TypeTag.INT32),
    TypeTag.INT64: _make_int_coercer(TypeTag.INT64),
    TypeTag.INT16: _make_int_coercer(TypeTag.INT16),
    TypeTag.BYTE: _make_int_coercer(TypeTag.BYTE),
    TypeTag.FLOAT32: _coerce_float32,
    TypeTag.FLOAT64: _to_float,
    TypeTag.BOOL: _coerce_bool,
    TypeTag.CHAR: _coerce_char,
}

ZERO_VALUES: dict[TypeTag, Any] = {
    TypeTag.STRING: "",
    TypeTag.INT32: 0,
    TypeTag.INT64: 0,
    TypeTag.INT16: 0,
    TypeTag.BYTE: 0,
    TypeTag.FLOAT32: 0.0,
    TypeTag.FLOAT64: 0.0,
    TypeTag.BOOL: False,
    TypeTag.CHAR: "\0",
}


def coerce(tag: TypeTag | None, raw: Any) -> Any:
    """Coerce ``raw`` to the Python value for ``tag``; ``None`` means unset."""
    if tag is None or raw is None:
        return None
    return _COERCERS[tag](raw)


def zero_value(tag: TypeTag | None) -> Any:
    """Zero value for ``tag``; unsupported tags have none (``None``)."""
    if tag is None:
        return None
    return ZERO_VALUES[tag]


def to_storage(tag: TypeTag, value: Any) -> Any:
    """Convert a coerced value to what the relational store persists.

    Booleans are stored as INTEGER 0/1; everything else is stored as is.
    """
    if tag is TypeTag.BOOL and value is not None:
        return int(value)
    return value
