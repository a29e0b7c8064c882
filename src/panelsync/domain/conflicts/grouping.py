"""Identity grouping and protocol sub-grouping.

Responsibilities of this stage:
- correlate copies of one logical subscriber (normalized email first, then
  protocol-qualified identifier)
- drop copies that cannot be correlated with anything
- split identity groups into per-protocol buckets worth comparing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from panelsync.domain.model import ClientEntry, IdentityType

from .identity import client_identifier, normalize_email, normalize_protocol, text_value

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)

MIN_COMPARABLE_ENTRIES = 2


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityGroup:
    """Copies believed to represent one logical subscriber."""

    identity_type: IdentityType
    identity_value: str
    entries: tuple[ClientEntry, ...]

    @property
    def group_key(self) -> str:
        return f"{self.identity_type}:{self.identity_value}"

    @property
    def display_identity(self) -> str:
        if self.identity_type is IdentityType.EMAIL:
            return self.identity_value
        return f"identifier {self.identity_value}"

    @property
    def server_count(self) -> int:
        return len({text_value(entry.server_id) for entry in self.entries} - {""})


def identity_of(entry: ClientEntry) -> tuple[IdentityType, str] | None:
    """Return the identity ``entry`` correlates on, or ``None`` if it has none."""

    if not isinstance(entry, ClientEntry):
        raise TypeError(f"Expected ClientEntry, got {type(entry).__name__}")

    email = normalize_email(entry.email)
    if email:
        return IdentityType.EMAIL, email
    identifier = client_identifier(entry)
    if identifier:
        return IdentityType.IDENTIFIER, f"{normalize_protocol(entry.protocol)}:{identifier}"
    return None


def group_by_identity(entries: Iterable[ClientEntry]) -> list[IdentityGroup]:
    """Cluster ``entries`` by identity, in order of first appearance."""

    buckets: dict[tuple[IdentityType, str], list[ClientEntry]] = {}
    skipped = 0
    for entry in entries:
        identity = identity_of(entry)
        if identity is None:
            skipped += 1
            continue
        buckets.setdefault(identity, []).append(entry)

    if skipped:
        log.debug("Skipped %s client entries without email or identifier", skipped)

    return [
        IdentityGroup(identity_type=identity_type, identity_value=value, entries=tuple(members))
        for (identity_type, value), members in buckets.items()
    ]


def partition_by_protocol(group: IdentityGroup) -> dict[str, tuple[ClientEntry, ...]]:
    """Split ``group`` by protocol, keeping only buckets with something to compare."""

    buckets: dict[str, list[ClientEntry]] = {}
    for entry in group.entries:
        buckets.setdefault(normalize_protocol(entry.protocol), []).append(entry)
    return {
        protocol: tuple(members)
        for protocol, members in buckets.items()
        if len(members) >= MIN_COMPARABLE_ENTRIES
    }
