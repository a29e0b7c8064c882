"""Translate panel inbound payloads into client entries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from panelsync.domain.model import ClientEntry

from .schema import InboundPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from panelsync.config.panels import PanelServerConfig


def parse_inbound(payload: InboundPayload | Mapping[str, object]) -> InboundPayload:
    if isinstance(payload, InboundPayload):
        return payload
    return InboundPayload.model_validate(payload)


def entries_from_inbound(
    inbound: InboundPayload | Mapping[str, object],
    *,
    server: PanelServerConfig,
) -> list[ClientEntry]:
    """Stamp every client of ``inbound`` with its server and inbound origin."""

    model = parse_inbound(inbound)
    return [
        ClientEntry(
            server_id=server.id,
            server_name=server.name,
            inbound_id=model.id,
            inbound_remark=model.remark,
            inbound_port=model.port,
            protocol=model.protocol,
            email=client.email,
            id=client.id,
            password=client.password,
            expiry_time=client.expiry_time,
            total_gb=client.total_gb,
            enable=client.enable,
            limit_ip=client.limit_ip,
            flow=client.flow,
            sub_id=client.sub_id,
            tg_id=client.tg_id,
        )
        for client in model.clients()
    ]


def entries_from_inbounds(
    inbounds: Iterable[InboundPayload | Mapping[str, object]],
    *,
    server: PanelServerConfig,
) -> list[ClientEntry]:
    entries: list[ClientEntry] = []
    for inbound in inbounds:
        entries.extend(entries_from_inbound(inbound, server=server))
    return entries
