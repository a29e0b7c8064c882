"""Ports connecting the conflict engine to backend adapters."""

from __future__ import annotations

from .applying import BatchApplier, BatchApplyResult, BatchSummary, TargetOutcome
from .fetching import BackendFailure, InventoryFetcher, InventorySnapshot

__all__ = [
    "BackendFailure",
    "BatchApplier",
    "BatchApplyResult",
    "BatchSummary",
    "InventoryFetcher",
    "InventorySnapshot",
    "TargetOutcome",
]
