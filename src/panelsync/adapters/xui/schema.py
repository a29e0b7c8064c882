"""Pydantic models describing the 3x-ui panel API payloads."""

from __future__ import annotations

import json
import logging
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

log = logging.getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PanelBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ApiEnvelope(PanelBaseModel):
    """Common ``{success, msg, obj}`` wrapper of every panel response."""

    success: bool = False
    msg: str = ""
    obj: object = None

    @field_validator("msg", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class ClientPayload(PanelBaseModel):
    id: str | None = None
    password: str | None = None
    email: str | None = None
    flow: str | None = None
    limit_ip: int | float | str | None = Field(default=0, alias="limitIp")
    total_gb: int | float | str | None = Field(default=0, alias="totalGB")
    expiry_time: int | float | str | None = Field(default=0, alias="expiryTime")
    enable: bool | None = None
    tg_id: str | int | None = Field(default=None, alias="tgId")
    sub_id: str | None = Field(default=None, alias="subId")

    _normalize_blank = field_validator("id", "password", "email", "flow", "sub_id", mode="before")(
        _blank_to_none
    )


class InboundPayload(PanelBaseModel):
    id: int
    remark: str = ""
    protocol: str
    port: int | None = None
    settings: dict[str, object] = Field(default_factory=dict)

    @field_validator("remark", mode="before")
    @classmethod
    def _remark_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("settings", mode="before")
    @classmethod
    def _parse_settings(cls, value: object) -> object:
        # The panel ships settings as a JSON document embedded in a string.
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                log.warning("Ignoring unparseable inbound settings")
                return {}
            return parsed if isinstance(parsed, dict) else {}
        return value

    def clients(self) -> list[ClientPayload]:
        raw_clients = self.settings.get("clients")
        if not isinstance(raw_clients, list):
            return []
        clients: list[ClientPayload] = []
        for raw in cast(list[object], raw_clients):
            try:
                clients.append(ClientPayload.model_validate(raw))
            except ValidationError:
                log.warning("Skipping malformed client in inbound %s", self.id)
        return clients


class InboundListResponse(ApiEnvelope):
    obj: list[InboundPayload] | None = None  # type: ignore[assignment]
