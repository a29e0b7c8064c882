"""Risk gate thresholds."""

from __future__ import annotations

from panelsync.domain.risk import RiskPolicy

from .env import env_bool, env_int


def get_risk_policy() -> RiskPolicy:
    defaults = RiskPolicy()
    return RiskPolicy(
        require_high_risk_confirmation=env_bool(
            "PANELSYNC_REQUIRE_HIGH_RISK_CONFIRMATION",
            defaults.require_high_risk_confirmation,
        ),
        medium_min_targets=env_int(
            "PANELSYNC_MEDIUM_RISK_MIN_TARGETS", defaults.medium_min_targets, minimum=1
        ),
        high_min_targets=env_int(
            "PANELSYNC_HIGH_RISK_MIN_TARGETS", defaults.high_min_targets, minimum=1
        ),
    )
