"""3x-ui panel adapter."""

from __future__ import annotations

from .applier import PanelBatchApplier
from .client import PanelAPIError, PanelAuthError, PanelSession, open_panel_session
from .fetcher import PanelInventoryFetcher
from .schema import ApiEnvelope, ClientPayload, InboundListResponse, InboundPayload
from .translator import entries_from_inbound, entries_from_inbounds

__all__ = [
    "ApiEnvelope",
    "ClientPayload",
    "InboundListResponse",
    "InboundPayload",
    "PanelAPIError",
    "PanelAuthError",
    "PanelBatchApplier",
    "PanelInventoryFetcher",
    "PanelSession",
    "entries_from_inbound",
    "entries_from_inbounds",
    "open_panel_session",
]
