from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from panelsync.domain.conflicts import build_plan, build_report, entry_locator
from panelsync.domain.model import ComparableField, ConflictType, Severity
from tests.support.entries import make_entry

if TYPE_CHECKING:
    from panelsync.domain.model import ClientEntry


def _scenario_entries() -> list[ClientEntry]:
    return [
        make_entry("srv-a", email="u@example.com", enable=True, expiry_time=1000),
        make_entry("srv-b", email="u@example.com", enable=True, expiry_time=2000),
        make_entry("srv-c", email="u@example.com", enable=False, expiry_time=3000),
    ]


def test_three_copy_scenario() -> None:
    entries = _scenario_entries()

    report = build_report(entries)

    assert report.summary.total_groups == 1
    assert report.summary.conflict_groups == 1
    (group,) = report.groups
    assert group.group_key == "email:u@example.com"
    assert group.severity is Severity.MEDIUM
    (bucket,) = group.protocols
    assert bucket.protocol == "vless"
    assert ComparableField.EXPIRY_TIME in bucket.diff_fields
    assert ComparableField.ID not in bucket.diff_fields
    assert bucket.conflict_types[0] is ConflictType.EXPIRY_MISMATCH
    assert bucket.recommended_source_key == entry_locator(entries[1])

    plan = build_plan(bucket)

    assert [target.server_id for target in plan.targets] == ["srv-a", "srv-c"]
    assert plan.source_entry is entries[1]


def test_credential_mismatch_makes_group_high_severity() -> None:
    entries = [
        make_entry("srv-a", id="uuid-1"),
        make_entry("srv-b", id="uuid-2", expiry_time=5),
    ]

    (group,) = build_report(entries).groups

    assert group.severity is Severity.HIGH
    assert group.conflict_types == (
        ConflictType.CREDENTIAL_MISMATCH,
        ConflictType.EXPIRY_MISMATCH,
    )


def test_no_conflict_for_identical_copies() -> None:
    entries = [make_entry("srv-a", total_gb=10), make_entry("srv-b", total_gb="10")]

    report = build_report(entries)

    assert report.groups == ()
    assert report.summary.total_groups == 1
    assert report.summary.conflict_groups == 0


def test_cross_protocol_differences_are_not_conflicts() -> None:
    entries = [
        make_entry("srv-a", protocol="vless", expiry_time=1),
        make_entry("srv-b", protocol="trojan", password="pw", expiry_time=2),
    ]

    assert build_report(entries).groups == ()


def test_groups_sorted_high_first_then_by_size() -> None:
    entries = [
        make_entry("srv-a", email="small@x", id="u", limit_ip=1),
        make_entry("srv-b", email="small@x", id="u", limit_ip=2),
        make_entry("srv-a", email="big@x", id="u", limit_ip=1),
        make_entry("srv-b", email="big@x", id="u", limit_ip=2),
        make_entry("srv-c", email="big@x", id="u", limit_ip=3),
        make_entry("srv-a", email="high@x", id="u1"),
        make_entry("srv-b", email="high@x", id="u2"),
    ]

    report = build_report(entries)

    assert [group.group_key for group in report.groups] == [
        "email:high@x",
        "email:big@x",
        "email:small@x",
    ]
    assert report.summary.high == 1
    assert report.summary.medium == 2


def test_skipped_counts_uncorrelatable_entries() -> None:
    entries = [make_entry(email=None, id=None), make_entry("srv-a"), make_entry("srv-b")]
    assert build_report(entries).summary.skipped == 1


def test_report_is_idempotent() -> None:
    scanned_at = datetime(2026, 1, 1, tzinfo=UTC)
    entries = [*_scenario_entries(), make_entry("srv-d", email="u@example.com", id="other")]

    first = build_report(entries, scanned_at=scanned_at).to_dict()
    second = build_report(entries, scanned_at=scanned_at).to_dict()

    assert first == second
    assert json.dumps(first) == json.dumps(second)
    assert first["scannedAt"] == "2026-01-01T00:00:00+00:00"


def test_report_serialization_shape() -> None:
    entries = _scenario_entries()
    entries[0] = make_entry("srv-a", email="u@example.com", expiry_time="1000", enable=None)

    payload = build_report(entries).to_dict()

    assert "scannedAt" not in payload
    (group,) = payload["groups"]  # type: ignore[misc]
    assert group["serverCount"] == 3
    assert group["conflictFieldLabels"] == ["Expiry", "Enabled"]
    (bucket,) = group["protocols"]
    assert bucket["diffFields"] == ["expiryTime", "enable"]
    assert bucket["fieldDistinct"]["expiryTime"] == [1000, 2000, 3000]
    assert bucket["entries"][0]["expiryTime"] == 1000
    assert bucket["entries"][0]["enable"] is True
    assert bucket["sourceCandidates"][0]["serverId"] == "srv-b"
