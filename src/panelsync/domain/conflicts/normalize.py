"""Type-aware normalization of comparable client fields.

Responsibilities of this stage:
- coerce raw backend values into one canonical representation per field kind
- expose normalized values as an explicit tagged type so equality never depends
  on serialization or on ``True == 1`` style coincidences
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from panelsync.domain.model import ComparableField

from .identity import text_value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from panelsync.domain.model import ClientEntry


class ValueKind(StrEnum):
    NUMBER = "number"
    BOOL = "bool"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class FieldValue:
    """Normalized value of one comparable field."""

    kind: ValueKind
    value: int | float | bool | str

    def to_json(self) -> int | float | bool | str:
        return self.value


_NUMERIC_FIELDS: Final = frozenset(
    {ComparableField.EXPIRY_TIME, ComparableField.TOTAL_GB, ComparableField.LIMIT_IP}
)

_ENTRY_ATTRIBUTES: Final[Mapping[ComparableField, str]] = MappingProxyType(
    {
        ComparableField.ID: "id",
        ComparableField.PASSWORD: "password",
        ComparableField.EXPIRY_TIME: "expiry_time",
        ComparableField.TOTAL_GB: "total_gb",
        ComparableField.ENABLE: "enable",
        ComparableField.LIMIT_IP: "limit_ip",
        ComparableField.FLOW: "flow",
        ComparableField.SUB_ID: "sub_id",
        ComparableField.EMAIL: "email",
    }
)

_TRUE_STRINGS: Final = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS: Final = frozenset({"0", "false", "no", "off"})


def to_number(value: object) -> int | float:
    """Coerce ``value`` to a finite number; anything else becomes ``0``."""

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value is None:
        return 0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def to_enabled(value: object) -> bool:
    """Coerce an ``enable`` flag; an absent flag means enabled."""

    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return bool(value)


def raw_field_value(entry: ClientEntry, field: ComparableField) -> object:
    return getattr(entry, _ENTRY_ATTRIBUTES[field])


def normalize_field_value(field: ComparableField, value: object) -> FieldValue:
    if field in _NUMERIC_FIELDS:
        return FieldValue(ValueKind.NUMBER, to_number(value))
    if field is ComparableField.ENABLE:
        return FieldValue(ValueKind.BOOL, to_enabled(value))
    return FieldValue(ValueKind.TEXT, text_value(value))


def normalized_field(entry: ClientEntry, field: ComparableField) -> FieldValue:
    return normalize_field_value(field, raw_field_value(entry, field))
