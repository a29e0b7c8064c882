"""HTTP session against one 3x-ui panel backend."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from panelsync.adapters.http_resilience import ResilientClient

from .schema import ApiEnvelope, InboundListResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

    from panelsync.config.http_resilience import ResilienceConfig
    from panelsync.config.panels import PanelServerConfig

    from .schema import InboundPayload

log = getLogger(__name__)

LOGIN_PATH = "/login"
INBOUND_LIST_PATH = "/panel/api/inbounds/list"
UPDATE_CLIENT_PATH = "/panel/api/inbounds/updateClient/{identifier}"

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


class PanelAPIError(RuntimeError):
    """Raised when a panel rejects a request or answers with an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PanelAuthError(PanelAPIError):
    """Raised when logging into a panel fails."""


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class PanelSession:
    """Authenticated conversation with one panel; cookies live on ``client``."""

    def __init__(self, server: PanelServerConfig, client: ResilientClient) -> None:
        self.server = server
        self._client = client

    async def login(self) -> None:
        response = await self._client.post(
            LOGIN_PATH,
            data={"username": self.server.username, "password": self.server.password},
        )
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise PanelAuthError(
                f"Login rejected by {self.server.name}", status_code=response.status_code
            )
        envelope = _parse_envelope(response, ApiEnvelope)
        if not envelope.success:
            raise PanelAuthError(envelope.msg or f"Login failed on {self.server.name}")
        log.debug("Logged into panel %s", self.server.name)

    async def list_inbounds(self) -> list[InboundPayload]:
        response = await self._client.get(INBOUND_LIST_PATH)
        envelope = _parse_envelope(response, InboundListResponse)
        if not envelope.success:
            raise PanelAPIError(envelope.msg or "Inbound listing failed")
        return envelope.obj or []

    async def update_client(
        self,
        *,
        inbound_id: int | str,
        client_identifier: str,
        client: Mapping[str, object],
    ) -> str:
        """Overwrite the client addressed by ``client_identifier`` on ``inbound_id``."""

        path = UPDATE_CLIENT_PATH.format(identifier=quote(client_identifier, safe=""))
        response = await self._client.post(
            path,
            data={
                "id": str(inbound_id),
                "settings": json.dumps({"clients": [dict(client)]}),
            },
        )
        envelope = _parse_envelope(response, ApiEnvelope)
        if not envelope.success:
            raise PanelAPIError(envelope.msg or "Client update failed")
        return envelope.msg or "Client updated"


@asynccontextmanager
async def open_panel_session(
    server: PanelServerConfig,
    *,
    client_factory: ClientFactory | None = None,
) -> AsyncIterator[PanelSession]:
    """Yield a logged-in session, closing the HTTP client afterwards.

    Reads that hit an expired session log in again and are retried once.
    """

    factory = client_factory or default_client_factory
    async with factory(server.resilience()) as client:
        session = PanelSession(server, client)
        await session.login()
        client.renew_session = session.login
        yield session


def _parse_envelope[T: ApiEnvelope](response: httpx.Response, model: type[T]) -> T:
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise PanelAuthError("Panel session is not authorized", status_code=response.status_code)
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise PanelAPIError(
            f"Panel answered HTTP {response.status_code}", status_code=response.status_code
        ) from exc
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise PanelAPIError(
            "Unexpected panel response payload", status_code=response.status_code
        ) from exc
