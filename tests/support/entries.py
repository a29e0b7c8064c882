"""Builders for client entries and panel fixtures used across tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from panelsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from panelsync.config.panels import PanelsConfig, PanelServerConfig
from panelsync.domain.model import ClientEntry

if TYPE_CHECKING:
    from collections.abc import Callable


def make_entry(  # noqa: PLR0913
    server_id: str = "srv-a",
    *,
    protocol: str = "vless",
    email: str | None = "alice@example.com",
    id: str | None = "11111111-1111-1111-1111-111111111111",  # noqa: A002
    password: str | None = None,
    inbound_id: int | str = 1,
    enable: bool | None = True,
    expiry_time: object = 0,
    total_gb: object = 0,
    limit_ip: object = 0,
    flow: str | None = None,
    sub_id: str | None = None,
    tg_id: str | int | None = None,
) -> ClientEntry:
    """Create a client copy with sensible defaults for one subscriber."""

    return ClientEntry(
        server_id=server_id,
        server_name=server_id.upper(),
        inbound_id=inbound_id,
        inbound_remark=f"{protocol}-{inbound_id}",
        inbound_port=443,
        protocol=protocol,
        email=email,
        id=id,
        password=password,
        expiry_time=expiry_time,  # type: ignore[arg-type]
        total_gb=total_gb,  # type: ignore[arg-type]
        enable=enable,
        limit_ip=limit_ip,  # type: ignore[arg-type]
        flow=flow,
        sub_id=sub_id,
        tg_id=tg_id,
    )


def make_server(server_id: str, *, name: str | None = None) -> PanelServerConfig:
    return PanelServerConfig(
        id=server_id,
        name=name or server_id.upper(),
        url=f"https://{server_id}.example.test:2053",
        username="admin",
        password="secret",
        base_path="/root",
    )


def make_panels(*server_ids: str) -> PanelsConfig:
    return PanelsConfig(servers=tuple(make_server(server_id) for server_id in server_ids))


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    """Route every panel request through ``handler`` instead of the network."""

    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def envelope(obj: object = None, *, success: bool = True, msg: str = "") -> httpx.Response:
    return httpx.Response(status_code=200, json={"success": success, "msg": msg, "obj": obj})
