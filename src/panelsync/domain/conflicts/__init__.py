"""Conflict detection and reconciliation planning for client copies.

Layered flow:
1) extract identifiers and locators for every copy
2) group copies by identity, then by protocol
3) normalize and diff comparable fields, classify conflicts
4) rank copies to recommend a canonical source
5) aggregate diverging groups into a report
6) on selection, build a reconciliation plan for a batch applier
"""

from __future__ import annotations

from .diff import (
    CONFLICT_TYPE_LABELS,
    FIELD_LABELS,
    ProtocolConflictGroup,
    analyze_protocol_group,
    comparable_fields,
    field_labels_for_types,
)
from .grouping import IdentityGroup, group_by_identity, partition_by_protocol
from .identity import client_identifier, credential_family, entry_locator
from .normalize import FieldValue, ValueKind, normalize_field_value
from .plan import (
    ClientPayload,
    PlanStatus,
    PlanTarget,
    ReconciliationPlan,
    SourceSelection,
    UnknownSourceLocatorError,
    build_plan,
)
from .report import ConflictGroup, ConflictReport, ReportSummary, build_report
from .scoring import ENABLED_BONUS, SourceCandidate, rank, score

__all__ = [
    "CONFLICT_TYPE_LABELS",
    "ENABLED_BONUS",
    "FIELD_LABELS",
    "ClientPayload",
    "ConflictGroup",
    "ConflictReport",
    "FieldValue",
    "IdentityGroup",
    "PlanStatus",
    "PlanTarget",
    "ProtocolConflictGroup",
    "ReconciliationPlan",
    "ReportSummary",
    "SourceCandidate",
    "SourceSelection",
    "UnknownSourceLocatorError",
    "ValueKind",
    "analyze_protocol_group",
    "build_plan",
    "build_report",
    "client_identifier",
    "comparable_fields",
    "credential_family",
    "entry_locator",
    "field_labels_for_types",
    "group_by_identity",
    "normalize_field_value",
    "partition_by_protocol",
    "rank",
    "score",
]
