"""Conflict report aggregation.

``build_report`` is a pure function of its input snapshot: it performs no I/O
and two runs over the same entries serialize identically. The only
non-deterministic value, the scan timestamp, is supplied by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from panelsync.domain.model import ConflictType, Severity

from .diff import FIELD_LABELS, analyze_protocol_group, sort_conflict_types
from .grouping import group_by_identity, partition_by_protocol
from .normalize import to_enabled, to_number

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from panelsync.domain.model import ClientEntry

    from .diff import ProtocolConflictGroup
    from .grouping import IdentityGroup

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReportSummary:
    total_groups: int = 0
    conflict_groups: int = 0
    high: int = 0
    medium: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalGroups": self.total_groups,
            "conflictGroups": self.conflict_groups,
            "high": self.high,
            "medium": self.medium,
            "skipped": self.skipped,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictGroup:
    """An identity group with at least one diverging protocol bucket."""

    identity: IdentityGroup
    severity: Severity
    conflict_types: tuple[ConflictType, ...]
    protocols: tuple[ProtocolConflictGroup, ...]

    @property
    def group_key(self) -> str:
        return self.identity.group_key

    @property
    def entry_count(self) -> int:
        return len(self.identity.entries)

    @property
    def conflict_field_labels(self) -> tuple[str, ...]:
        labels = (FIELD_LABELS[field] for group in self.protocols for field in group.diff_fields)
        return tuple(dict.fromkeys(labels))

    def protocol_group(self, protocol: str) -> ProtocolConflictGroup | None:
        wanted = protocol.strip().lower()
        return next((group for group in self.protocols if group.protocol == wanted), None)

    def to_dict(self) -> dict[str, object]:
        return {
            "groupKey": self.group_key,
            "identityType": str(self.identity.identity_type),
            "identityValue": self.identity.identity_value,
            "displayIdentity": self.identity.display_identity,
            "entryCount": self.entry_count,
            "serverCount": self.identity.server_count,
            "conflictTypes": [str(item) for item in self.conflict_types],
            "conflictFieldLabels": list(self.conflict_field_labels),
            "severity": str(self.severity),
            "protocols": [_protocol_group_dict(group) for group in self.protocols],
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictReport:
    summary: ReportSummary
    groups: tuple[ConflictGroup, ...]
    scanned_at: datetime | None = None

    def group(self, group_key: str) -> ConflictGroup | None:
        return next((group for group in self.groups if group.group_key == group_key), None)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        if self.scanned_at is not None:
            payload["scannedAt"] = self.scanned_at.isoformat()
        payload["summary"] = self.summary.to_dict()
        payload["groups"] = [group.to_dict() for group in self.groups]
        return payload


def build_report(
    entries: Iterable[ClientEntry],
    *,
    scanned_at: datetime | None = None,
) -> ConflictReport:
    """Group, diff and rank ``entries`` into a sorted conflict report."""

    snapshot = tuple(entries)
    identity_groups = group_by_identity(snapshot)
    grouped = sum(len(group.entries) for group in identity_groups)

    conflict_groups = [
        conflict
        for conflict in (_analyze_identity_group(group) for group in identity_groups)
        if conflict is not None
    ]
    conflict_groups.sort(
        key=lambda item: (item.severity is not Severity.HIGH, -item.entry_count)
    )

    high = sum(1 for group in conflict_groups if group.severity is Severity.HIGH)
    summary = ReportSummary(
        total_groups=len(identity_groups),
        conflict_groups=len(conflict_groups),
        high=high,
        medium=len(conflict_groups) - high,
        skipped=len(snapshot) - grouped,
    )
    log.debug(
        "Conflict scan: entries=%s groups=%s conflicts=%s high=%s",
        len(snapshot),
        summary.total_groups,
        summary.conflict_groups,
        summary.high,
    )
    return ConflictReport(summary=summary, groups=tuple(conflict_groups), scanned_at=scanned_at)


def _analyze_identity_group(group: IdentityGroup) -> ConflictGroup | None:
    if len(group.entries) < 2:
        return None

    protocols = [
        analyzed
        for analyzed in (
            analyze_protocol_group(members, group.identity_type)
            for members in partition_by_protocol(group).values()
        )
        if analyzed.has_conflict
    ]
    if not protocols:
        return None

    protocols.sort(key=lambda item: -item.entry_count)
    conflict_types = sort_conflict_types(
        conflict_type for analyzed in protocols for conflict_type in analyzed.conflict_types
    )
    severity = (
        Severity.HIGH if ConflictType.CREDENTIAL_MISMATCH in conflict_types else Severity.MEDIUM
    )
    return ConflictGroup(
        identity=group,
        severity=severity,
        conflict_types=conflict_types,
        protocols=tuple(protocols),
    )


def _entry_dict(entry: ClientEntry) -> dict[str, object]:
    record = entry.to_dict()
    record["expiryTime"] = to_number(entry.expiry_time)
    record["totalGB"] = to_number(entry.total_gb)
    record["limitIp"] = to_number(entry.limit_ip)
    record["enable"] = to_enabled(entry.enable)
    return record


def _protocol_group_dict(group: ProtocolConflictGroup) -> dict[str, object]:
    return {
        "protocol": group.protocol,
        "entryCount": group.entry_count,
        "diffFields": [str(field) for field in group.diff_fields],
        "fieldDistinct": {
            str(field): [value.to_json() for value in values]
            for field, values in group.field_distinct.items()
        },
        "conflictTypes": [str(item) for item in group.conflict_types],
        "hasConflict": group.has_conflict,
        "recommendedSourceKey": group.recommended_source_key,
        "sourceCandidates": [candidate.to_dict() for candidate in group.source_candidates],
        "entries": [_entry_dict(entry) for entry in group.entries],
    }
