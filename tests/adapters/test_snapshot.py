from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from panelsync.adapters.snapshot import SnapshotFileFetcher, write_snapshot
from panelsync.config import InputFileError
from panelsync.domain.ports import InventoryFetcher
from tests.support.entries import make_entry

if TYPE_CHECKING:
    from pathlib import Path


def test_written_snapshot_reads_back_unchanged(tmp_path: Path) -> None:
    entries = [
        make_entry("srv-a", expiry_time="1700000000000", enable=None, tg_id=7),
        make_entry("srv-b", protocol="trojan", password="pw", inbound_id="9", total_gb=1.5),
    ]
    path = tmp_path / "snapshot.json"

    assert write_snapshot(entries, path) == 2
    fetcher = SnapshotFileFetcher(path)
    snapshot = fetcher()

    assert isinstance(fetcher, InventoryFetcher)
    assert list(snapshot.entries) == entries
    assert not snapshot.is_partial
    assert json.loads(path.read_text(encoding="utf-8"))[0]["serverId"] == "srv-a"


def test_reads_hand_written_records_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps([{"serverId": "srv-a", "inboundId": 1, "protocol": "vless", "id": "u"}]),
        encoding="utf-8",
    )

    (entry,) = SnapshotFileFetcher(path)().entries

    assert entry.server_name == ""
    assert entry.email is None
    assert entry.expiry_time == 0


@pytest.mark.parametrize("content", ['{"serverId": "srv-a"}', "[{}]", "not json"])
def test_invalid_snapshot_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InputFileError, match="Invalid snapshot file") as excinfo:
        SnapshotFileFetcher(path)()

    assert excinfo.value.path == path


def test_missing_snapshot_file(tmp_path: Path) -> None:
    with pytest.raises(InputFileError, match="Cannot read snapshot file"):
        SnapshotFileFetcher(tmp_path / "absent.json")()
