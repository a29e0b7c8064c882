"""Risk assessment for batch operations against backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

SENSITIVE_ACTIONS: Final = frozenset({"delete", "disable"})


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class RiskPolicy:
    require_high_risk_confirmation: bool = True
    medium_min_targets: int = 20
    high_min_targets: int = 100


@dataclass(frozen=True, slots=True, kw_only=True)
class RiskAssessment:
    batch_type: str
    action: str
    level: RiskLevel
    target_count: int
    reasons: tuple[str, ...]
    requires_confirmation: bool
    is_retry: bool = False

    @property
    def operation_key(self) -> str:
        mode = "retry" if self.is_retry else "direct"
        return f"{mode}:{self.batch_type}:{self.action}"


class ConfirmationRequiredError(RuntimeError):
    """Raised when a high-risk batch is dispatched without operator confirmation."""

    def __init__(self, assessment: RiskAssessment) -> None:
        self.assessment = assessment
        reasons = ", ".join(assessment.reasons) or "policy"
        super().__init__(
            f"{assessment.operation_key} on {assessment.target_count} targets is "
            f"{assessment.level} risk ({reasons}); explicit confirmation required"
        )


def assess_batch_risk(
    action: str,
    target_count: int,
    *,
    policy: RiskPolicy | None = None,
    batch_type: str = "clients",
    is_retry: bool = False,
) -> RiskAssessment:
    active = policy or RiskPolicy()
    normalized_action = action.strip().lower() or "unknown"
    count = max(0, target_count)
    reasons: list[str] = []
    level = RiskLevel.LOW

    if normalized_action in SENSITIVE_ACTIONS:
        level = RiskLevel.HIGH
        reasons.append("sensitive_action")

    if count >= active.high_min_targets:
        level = RiskLevel.HIGH
        reasons.append("high_target_count")
    elif count >= active.medium_min_targets and level is RiskLevel.LOW:
        level = RiskLevel.MEDIUM
        reasons.append("medium_target_count")

    if is_retry:
        reasons.append("retry_operation")

    return RiskAssessment(
        batch_type=batch_type.strip().lower() or "unknown",
        action=normalized_action,
        level=level,
        target_count=count,
        reasons=tuple(reasons),
        requires_confirmation=active.require_high_risk_confirmation and level is RiskLevel.HIGH,
        is_retry=is_retry,
    )


def require_confirmation(assessment: RiskAssessment, *, confirmed: bool) -> None:
    if assessment.requires_confirmation and not confirmed:
        raise ConfirmationRequiredError(assessment)
