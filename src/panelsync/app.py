"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from panelsync.adapters.snapshot import write_snapshot
from panelsync.config import get_risk_policy
from panelsync.domain.conflicts import build_plan, build_report, field_labels_for_types
from panelsync.domain.risk import assess_batch_risk, require_confirmation

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from panelsync.domain.conflicts import (
        ConflictReport,
        ProtocolConflictGroup,
        ReconciliationPlan,
    )
    from panelsync.domain.ports import BatchApplier, BatchApplyResult, InventoryFetcher
    from panelsync.domain.ports.fetching import InventorySnapshot
    from panelsync.domain.risk import RiskPolicy

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ScanResult:
    snapshot: InventorySnapshot
    report: ConflictReport

    def to_dict(self) -> dict[str, object]:
        return {
            **self.report.to_dict(),
            "failures": [failure.to_dict() for failure in self.snapshot.failures],
        }


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    plan: ReconciliationPlan
    apply_result: BatchApplyResult | None
    rescan: ScanResult | None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "status": self.plan.status,
            "protocol": self.plan.protocol,
            "sourceKey": self.plan.source_key,
            "selection": self.plan.selection,
            "plan": self.plan.to_dict(),
        }
        if self.apply_result is not None:
            data["result"] = self.apply_result.to_dict()
        if self.rescan is not None:
            data["remainingConflicts"] = self.rescan.report.summary.to_dict()
        return data


def scan_conflicts(
    fetcher: InventoryFetcher,
    *,
    now_provider: Callable[[], datetime] = _utcnow,
) -> ScanResult:
    """Fetch every client copy and report identities whose copies diverge."""

    snapshot = fetcher()
    for failure in snapshot.failures:
        log.warning(
            "Server %s skipped: %s", failure.server_name or failure.server_id, failure.message
        )

    report = build_report(snapshot.entries, scanned_at=now_provider())
    summary = report.summary
    log.info(
        "Scanned %s entries: groups=%s, conflicts=%s (high=%s, medium=%s), skipped=%s",
        len(snapshot.entries),
        summary.total_groups,
        summary.conflict_groups,
        summary.high,
        summary.medium,
        summary.skipped,
    )
    return ScanResult(snapshot=snapshot, report=report)


def find_protocol_group(
    report: ConflictReport, group_key: str, protocol: str
) -> ProtocolConflictGroup:
    group = report.group(group_key)
    if group is None:
        raise LookupError(f"No conflict group with key {group_key!r}")
    bucket = group.protocol_group(protocol)
    if bucket is None:
        raise LookupError(f"Conflict group {group_key!r} has no {protocol} copies")
    return bucket


def plan_conflict(
    group_key: str,
    protocol: str,
    *,
    fetcher: InventoryFetcher,
    source_locator: str | None = None,
    allow_fallback: bool = False,
) -> ReconciliationPlan:
    """Build a plan for one protocol bucket from a fresh scan without applying it."""

    scan = scan_conflicts(fetcher)
    bucket = find_protocol_group(scan.report, group_key, protocol)
    log.info(
        "Group %s/%s diverges on: %s",
        group_key,
        bucket.protocol,
        ", ".join(field_labels_for_types(bucket.conflict_types)),
    )
    return build_plan(bucket, source_locator, allow_fallback=allow_fallback)


def reconcile_conflict(
    group_key: str,
    protocol: str,
    *,
    fetcher: InventoryFetcher,
    applier: BatchApplier,
    source_locator: str | None = None,
    risk_policy: RiskPolicy | None = None,
    confirmed: bool = False,
    allow_fallback: bool = False,
) -> ReconcileResult:
    """Overwrite every copy in one protocol bucket with the chosen source.

    The plan is always built from a fresh fetch, never from an earlier report. A
    plan that leaves nothing to apply is returned without touching any backend.
    """

    plan = plan_conflict(
        group_key,
        protocol,
        fetcher=fetcher,
        source_locator=source_locator,
        allow_fallback=allow_fallback,
    )
    log.info(
        "Planned %s for %s/%s: status=%s, source=%s (%s), targets=%s",
        plan.action,
        group_key,
        plan.protocol,
        plan.status,
        plan.source_key,
        plan.selection,
        len(plan.targets),
    )
    if not plan.is_actionable:
        return ReconcileResult(plan=plan, apply_result=None, rescan=None)

    assessment = assess_batch_risk(
        plan.action,
        len(plan.targets),
        policy=risk_policy or get_risk_policy(),
    )
    require_confirmation(assessment, confirmed=confirmed)

    apply_result = applier(plan)
    rescan = scan_conflicts(fetcher)
    remaining = rescan.report.group(group_key)
    if remaining is not None and remaining.protocol_group(plan.protocol) is not None:
        log.warning("Group %s/%s still diverges after apply", group_key, plan.protocol)
    return ReconcileResult(plan=plan, apply_result=apply_result, rescan=rescan)


def export_snapshot(fetcher: InventoryFetcher, path: Path) -> InventorySnapshot:
    """Fetch every client copy and store it as a snapshot file for offline scans."""

    snapshot = fetcher()
    for failure in snapshot.failures:
        log.warning(
            "Server %s missing from snapshot: %s",
            failure.server_name or failure.server_id,
            failure.message,
        )
    write_snapshot(snapshot.entries, path)
    return snapshot
