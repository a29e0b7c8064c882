"""Batch execution defaults for reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int

DEFAULT_BATCH_CONCURRENCY = 5
DEFAULT_MAX_CONCURRENCY = 10


@dataclass(frozen=True, slots=True)
class BatchConfig:
    concurrency: int = DEFAULT_BATCH_CONCURRENCY
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @property
    def effective_concurrency(self) -> int:
        return max(1, min(self.concurrency, self.max_concurrency))


def get_batch_config() -> BatchConfig:
    return BatchConfig(
        concurrency=env_int("PANELSYNC_BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY, minimum=1),
        max_concurrency=env_int("PANELSYNC_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY, minimum=1),
    )
