"""Fan-out inventory fetcher over every configured panel."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from panelsync.config.panels import PanelsConfig, get_panels_config
from panelsync.domain.ports.fetching import BackendFailure, InventoryFetcher, InventorySnapshot

from .client import PanelAPIError, default_client_factory, open_panel_session
from .translator import entries_from_inbounds

if TYPE_CHECKING:
    from panelsync.config.panels import PanelServerConfig
    from panelsync.domain.model import ClientEntry

    from .client import ClientFactory

log = getLogger(__name__)


@dataclass(slots=True)
class PanelInventoryFetcher:
    """Collect client copies from all panels concurrently.

    One failing panel never aborts the scan: it is reported as a
    ``BackendFailure`` and contributes no entries.
    """

    config: PanelsConfig = field(default_factory=get_panels_config)
    client_factory: ClientFactory = field(default=default_client_factory)

    def __call__(self) -> InventorySnapshot:
        return asyncio.run(self.fetch())

    async def fetch(self) -> InventorySnapshot:
        results = await asyncio.gather(
            *(self._fetch_server(server) for server in self.config.servers)
        )
        entries: list[ClientEntry] = []
        failures: list[BackendFailure] = []
        for server_entries, failure in results:
            entries.extend(server_entries)
            if failure is not None:
                failures.append(failure)
        log.info(
            "Fetched %s client entries from %s/%s panels",
            len(entries),
            len(self.config.servers) - len(failures),
            len(self.config.servers),
        )
        return InventorySnapshot(entries=tuple(entries), failures=tuple(failures))

    async def _fetch_server(
        self, server: PanelServerConfig
    ) -> tuple[list[ClientEntry], BackendFailure | None]:
        try:
            async with open_panel_session(server, client_factory=self.client_factory) as session:
                inbounds = await session.list_inbounds()
        except (httpx.HTTPError, PanelAPIError) as exc:
            log.warning("Failed to fetch clients from %s: %s", server.name, exc)
            failure = BackendFailure(server_id=server.id, server_name=server.name, message=str(exc))
            return [], failure
        return entries_from_inbounds(inbounds, server=server), None


if TYPE_CHECKING:
    _fetcher_check: InventoryFetcher = PanelInventoryFetcher()
