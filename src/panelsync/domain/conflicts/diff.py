"""Per-protocol field diffing and conflict classification."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from panelsync.domain.model import ComparableField, ConflictType, IdentityType

from .identity import credential_fields, entry_locator, normalize_protocol
from .normalize import normalized_field
from .scoring import SourceCandidate, rank

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from panelsync.domain.model import ClientEntry

    from .normalize import FieldValue


_COMMON_FIELDS: Final[tuple[ComparableField, ...]] = (
    ComparableField.EXPIRY_TIME,
    ComparableField.TOTAL_GB,
    ComparableField.ENABLE,
    ComparableField.LIMIT_IP,
    ComparableField.FLOW,
    ComparableField.SUB_ID,
)

FIELD_CONFLICT_TYPES: Final[Mapping[ComparableField, ConflictType]] = MappingProxyType(
    {
        ComparableField.ID: ConflictType.CREDENTIAL_MISMATCH,
        ComparableField.PASSWORD: ConflictType.CREDENTIAL_MISMATCH,
        ComparableField.EXPIRY_TIME: ConflictType.EXPIRY_MISMATCH,
        ComparableField.TOTAL_GB: ConflictType.QUOTA_MISMATCH,
        ComparableField.ENABLE: ConflictType.ENABLE_MISMATCH,
        ComparableField.LIMIT_IP: ConflictType.LIMIT_IP_MISMATCH,
        ComparableField.FLOW: ConflictType.FLOW_MISMATCH,
        ComparableField.SUB_ID: ConflictType.SUBID_MISMATCH,
        ComparableField.EMAIL: ConflictType.EMAIL_MISMATCH,
    }
)

CONFLICT_TYPE_PRIORITY: Final[Mapping[ConflictType, int]] = MappingProxyType(
    {
        ConflictType.CREDENTIAL_MISMATCH: 100,
        ConflictType.EXPIRY_MISMATCH: 60,
        ConflictType.QUOTA_MISMATCH: 50,
        ConflictType.ENABLE_MISMATCH: 40,
        ConflictType.LIMIT_IP_MISMATCH: 30,
        ConflictType.FLOW_MISMATCH: 20,
        ConflictType.SUBID_MISMATCH: 10,
        ConflictType.EMAIL_MISMATCH: 10,
    }
)

FIELD_LABELS: Final[Mapping[ComparableField, str]] = MappingProxyType(
    {
        ComparableField.ID: "UUID/ID",
        ComparableField.PASSWORD: "Password",
        ComparableField.EXPIRY_TIME: "Expiry",
        ComparableField.TOTAL_GB: "Traffic quota",
        ComparableField.ENABLE: "Enabled",
        ComparableField.LIMIT_IP: "IP limit",
        ComparableField.FLOW: "Flow",
        ComparableField.SUB_ID: "Subscription ID",
        ComparableField.EMAIL: "Email",
    }
)

CONFLICT_TYPE_LABELS: Final[Mapping[ConflictType, str]] = MappingProxyType(
    {
        ConflictType.CREDENTIAL_MISMATCH: "Credential mismatch",
        ConflictType.EXPIRY_MISMATCH: "Expiry mismatch",
        ConflictType.QUOTA_MISMATCH: "Traffic quota mismatch",
        ConflictType.ENABLE_MISMATCH: "Enabled state mismatch",
        ConflictType.LIMIT_IP_MISMATCH: "IP limit mismatch",
        ConflictType.FLOW_MISMATCH: "Flow mismatch",
        ConflictType.SUBID_MISMATCH: "Subscription ID mismatch",
        ConflictType.EMAIL_MISMATCH: "Email mismatch",
    }
)


def comparable_fields(
    protocol: str, identity_type: IdentityType
) -> tuple[ComparableField, ...]:
    """Fields compared for one protocol bucket.

    ``email`` is left out for email-correlated groups: it is equal by
    construction there.
    """

    fields = credential_fields(protocol) + _COMMON_FIELDS
    if identity_type is not IdentityType.EMAIL:
        fields += (ComparableField.EMAIL,)
    return fields


def distinct_values(
    entries: Sequence[ClientEntry],
    fields: Iterable[ComparableField],
) -> dict[ComparableField, tuple[FieldValue, ...]]:
    """Return the distinct normalized values of every field that disagrees."""

    result: dict[ComparableField, tuple[FieldValue, ...]] = {}
    for field in fields:
        values = tuple(dict.fromkeys(normalized_field(entry, field) for entry in entries))
        if len(values) > 1:
            result[field] = values
    return result


def sort_conflict_types(types: Iterable[ConflictType]) -> tuple[ConflictType, ...]:
    unique = dict.fromkeys(types)
    return tuple(sorted(unique, key=lambda item: CONFLICT_TYPE_PRIORITY[item], reverse=True))


def classify(diff_fields: Iterable[ComparableField]) -> tuple[ConflictType, ...]:
    return sort_conflict_types(FIELD_CONFLICT_TYPES[field] for field in diff_fields)


def field_labels_for_types(types: Iterable[ConflictType]) -> tuple[str, ...]:
    """Human labels of every field that can trigger one of ``types``."""

    labels = (
        FIELD_LABELS[field]
        for conflict_type in types
        for field, field_type in FIELD_CONFLICT_TYPES.items()
        if field_type is conflict_type
    )
    return tuple(dict.fromkeys(labels))


@dataclass(frozen=True, slots=True, kw_only=True)
class ProtocolConflictGroup:
    """Diff analysis of one protocol bucket of an identity group."""

    protocol: str
    identity_type: IdentityType
    entries: tuple[ClientEntry, ...]
    field_distinct: Mapping[ComparableField, tuple[FieldValue, ...]]
    conflict_types: tuple[ConflictType, ...]
    source_candidates: tuple[SourceCandidate, ...]

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def diff_fields(self) -> tuple[ComparableField, ...]:
        return tuple(self.field_distinct)

    @property
    def has_conflict(self) -> bool:
        return bool(self.field_distinct)

    @property
    def recommended_source_key(self) -> str:
        return self.source_candidates[0].source_key if self.source_candidates else ""


def analyze_protocol_group(
    entries: Sequence[ClientEntry],
    identity_type: IdentityType,
) -> ProtocolConflictGroup:
    protocol = normalize_protocol(entries[0].protocol) if entries else ""
    field_distinct = distinct_values(entries, comparable_fields(protocol, identity_type))
    ranked = rank(entries)
    return ProtocolConflictGroup(
        protocol=protocol,
        identity_type=identity_type,
        entries=tuple(entries),
        field_distinct=MappingProxyType(field_distinct),
        conflict_types=classify(field_distinct),
        source_candidates=tuple(SourceCandidate.from_entry(entry) for entry in ranked),
    )


def locate_member(group: ProtocolConflictGroup, locator: str) -> ClientEntry | None:
    return next((entry for entry in group.entries if entry_locator(entry) == locator), None)
