"""Ports for applying reconciliation plans to backends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from panelsync.domain.conflicts import PlanTarget, ReconciliationPlan


@dataclass(frozen=True, slots=True, kw_only=True)
class TargetOutcome:
    """Result of applying a plan to one target copy."""

    target: PlanTarget
    success: bool
    message: str = ""
    retriable: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            **self.target.to_dict(),
            "success": self.success,
            "msg": self.message,
            "retriable": self.retriable,
        }


@dataclass(frozen=True, slots=True)
class BatchSummary:
    total: int
    success: int
    failed: int

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "success": self.success, "failed": self.failed}


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchApplyResult:
    action: str
    outcomes: tuple[TargetOutcome, ...] = ()

    @property
    def summary(self) -> BatchSummary:
        success = sum(1 for outcome in self.outcomes if outcome.success)
        return BatchSummary(
            total=len(self.outcomes),
            success=success,
            failed=len(self.outcomes) - success,
        )

    def failures(self) -> tuple[TargetOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.success)

    def to_dict(self) -> dict[str, object]:
        return {
            "action": self.action,
            "summary": self.summary.to_dict(),
            "results": [outcome.to_dict() for outcome in self.outcomes],
        }


@runtime_checkable
class BatchApplier(Protocol):
    """Callable port executing a plan and reporting per-target outcomes."""

    def __call__(self, plan: ReconciliationPlan) -> BatchApplyResult: ...


__all__ = ["BatchApplier", "BatchApplyResult", "BatchSummary", "TargetOutcome"]
