"""Offline inventory: read and write client snapshots as JSON files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from panelsync.config.errors import InputFileError
from panelsync.domain.model import ClientEntry
from panelsync.domain.ports.fetching import InventoryFetcher, InventorySnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)


class SnapshotRecord(BaseModel):
    """One client copy as stored in a snapshot file (camelCase keys)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    server_id: str = Field(alias="serverId")
    server_name: str = Field(default="", alias="serverName")
    inbound_id: int | str = Field(alias="inboundId")
    inbound_remark: str = Field(default="", alias="inboundRemark")
    inbound_port: int | None = Field(default=None, alias="inboundPort")
    protocol: str = ""
    email: str | None = None
    id: str | None = None
    password: str | None = None
    expiry_time: int | float | str | None = Field(default=0, alias="expiryTime")
    total_gb: int | float | str | None = Field(default=0, alias="totalGB")
    enable: bool | None = None
    limit_ip: int | float | str | None = Field(default=0, alias="limitIp")
    flow: str | None = None
    sub_id: str | None = Field(default=None, alias="subId")
    tg_id: str | int | None = Field(default=None, alias="tgId")

    def to_entry(self) -> ClientEntry:
        return ClientEntry(**self.model_dump())


_RECORDS = TypeAdapter(list[SnapshotRecord])


def read_snapshot_entries(path: Path) -> list[ClientEntry]:
    try:
        records = _RECORDS.validate_json(path.read_bytes())
    except OSError as exc:
        raise InputFileError(f"Cannot read snapshot file {path}: {exc}", path=path) from exc
    except ValidationError as exc:
        raise InputFileError(f"Invalid snapshot file {path}: {exc}", path=path) from exc
    return [record.to_entry() for record in records]


def write_snapshot(entries: Iterable[ClientEntry], path: Path) -> int:
    """Dump ``entries`` to ``path`` and return how many were written."""

    records = [entry.to_dict() for entry in entries]
    path.write_text(json.dumps(records, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    log.info("Wrote %s client entries to %s", len(records), path)
    return len(records)


@dataclass(slots=True)
class SnapshotFileFetcher:
    path: Path

    def __call__(self) -> InventorySnapshot:
        entries = read_snapshot_entries(Path(self.path))
        log.info("Loaded %s client entries from %s", len(entries), self.path)
        return InventorySnapshot(entries=tuple(entries))


if TYPE_CHECKING:
    _fetcher_check: InventoryFetcher = SnapshotFileFetcher(Path())
