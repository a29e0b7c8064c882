"""Ports for fetching client inventories from backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from panelsync.domain.model import ClientEntry


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class BackendFailure:
    """A backend that contributed nothing to a snapshot."""

    server_id: str
    server_name: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"serverId": self.server_id, "serverName": self.server_name, "msg": self.message}


@dataclass(frozen=True, slots=True, kw_only=True)
class InventorySnapshot:
    """Point-in-time view of every client copy that could be fetched."""

    entries: tuple[ClientEntry, ...] = ()
    failures: tuple[BackendFailure, ...] = ()
    fetched_at: datetime = field(default_factory=_utcnow)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)


@runtime_checkable
class InventoryFetcher(Protocol):
    """Callable port returning a fresh inventory snapshot."""

    def __call__(self) -> InventorySnapshot: ...


__all__ = ["BackendFailure", "InventoryFetcher", "InventorySnapshot"]
