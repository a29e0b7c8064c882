from __future__ import annotations

import pytest

from panelsync.domain.conflicts import group_by_identity, partition_by_protocol
from panelsync.domain.model import IdentityType
from tests.support.entries import make_entry


def test_groups_by_normalized_email_across_servers_and_protocols() -> None:
    entries = [
        make_entry("srv-a", email="Alice@Example.com"),
        make_entry("srv-b", email=" alice@example.com ", protocol="trojan", password="pw"),
        make_entry("srv-c", email="bob@example.com"),
    ]

    groups = group_by_identity(entries)

    assert [group.group_key for group in groups] == [
        "email:alice@example.com",
        "email:bob@example.com",
    ]
    assert groups[0].entries == (entries[0], entries[1])
    assert groups[0].server_count == 2
    assert groups[0].display_identity == "alice@example.com"


def test_falls_back_to_protocol_qualified_identifier() -> None:
    entries = [
        make_entry("srv-a", email=None, id="uuid-1"),
        make_entry("srv-b", email="", id="uuid-1"),
        make_entry("srv-c", email=None, id="uuid-1", protocol="vmess"),
    ]

    groups = group_by_identity(entries)

    assert [group.group_key for group in groups] == [
        "identifier:vless:uuid-1",
        "identifier:vmess:uuid-1",
    ]
    assert groups[0].identity_type is IdentityType.IDENTIFIER
    assert groups[0].display_identity == "identifier vless:uuid-1"
    assert len(groups[0].entries) == 2


def test_email_group_never_merges_with_identifier_group() -> None:
    entries = [
        make_entry("srv-a", email="alice@example.com", id="uuid-1"),
        make_entry("srv-b", email=None, id="uuid-1"),
    ]

    groups = group_by_identity(entries)

    assert len(groups) == 2
    assert all(len(group.entries) == 1 for group in groups)


def test_entries_without_identity_are_dropped() -> None:
    entries = [make_entry(email=None, id=None), make_entry(email=None, id="  ")]
    assert group_by_identity(entries) == []


def test_rejects_foreign_objects() -> None:
    with pytest.raises(TypeError):
        group_by_identity([{"email": "alice@example.com"}])  # type: ignore[list-item]


def test_partition_keeps_only_comparable_protocol_buckets() -> None:
    entries = [
        make_entry("srv-a"),
        make_entry("srv-b", protocol="VLESS"),
        make_entry("srv-c", protocol="trojan", password="pw"),
    ]
    (group,) = group_by_identity(entries)

    buckets = partition_by_protocol(group)

    assert list(buckets) == ["vless"]
    assert buckets["vless"] == (entries[0], entries[1])
