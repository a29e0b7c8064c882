"""Public domain model surface."""

from __future__ import annotations

from panelsync.domain.model.entry import ClientEntry
from panelsync.domain.model.enums import (
    ComparableField,
    ConflictType,
    CredentialFamily,
    IdentityType,
    Severity,
)

__all__ = [
    "ClientEntry",
    "ComparableField",
    "ConflictType",
    "CredentialFamily",
    "IdentityType",
    "Severity",
]
