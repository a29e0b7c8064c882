"""Canonical source ranking.

The score is a layered sum: the enabled bonus dwarfs every realistic sum of
expiry (epoch ms), quota (bytes) and IP limit, so an enabled copy always
outranks a disabled one. The remaining terms are summed as-is even though their
units differ.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .identity import client_identifier, entry_locator, normalize_email, text_value
from .normalize import to_enabled, to_number

if TYPE_CHECKING:
    from collections.abc import Iterable

    from panelsync.domain.model import ClientEntry

ENABLED_BONUS: Final[int] = 1_000_000_000_000


def score(entry: ClientEntry) -> int | float:
    enabled_bonus = ENABLED_BONUS if to_enabled(entry.enable) else 0
    return (
        enabled_bonus
        + to_number(entry.expiry_time)
        + to_number(entry.total_gb)
        + to_number(entry.limit_ip)
    )


def rank(entries: Iterable[ClientEntry]) -> tuple[ClientEntry, ...]:
    """Sort ``entries`` by descending score; equal scores keep input order."""

    return tuple(sorted(entries, key=score, reverse=True))


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceCandidate:
    """Serializable summary of one copy eligible as reconciliation source."""

    source_key: str
    server_id: str
    server_name: str
    inbound_id: int | str
    inbound_remark: str
    identifier: str
    email: str
    enable: bool
    expiry_time: int | float
    total_gb: int | float
    limit_ip: int | float

    @classmethod
    def from_entry(cls, entry: ClientEntry) -> SourceCandidate:
        return cls(
            source_key=entry_locator(entry),
            server_id=entry.server_id,
            server_name=entry.server_name,
            inbound_id=entry.inbound_id,
            inbound_remark=text_value(entry.inbound_remark),
            identifier=client_identifier(entry),
            email=normalize_email(entry.email),
            enable=to_enabled(entry.enable),
            expiry_time=to_number(entry.expiry_time),
            total_gb=to_number(entry.total_gb),
            limit_ip=to_number(entry.limit_ip),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "sourceKey": self.source_key,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "inboundId": self.inbound_id,
            "inboundRemark": self.inbound_remark,
            "identifier": self.identifier,
            "email": self.email,
            "enable": self.enable,
            "expiryTime": self.expiry_time,
            "totalGB": self.total_gb,
            "limitIp": self.limit_ip,
        }
