from __future__ import annotations

import json

import httpx

from panelsync.adapters.xui import PanelInventoryFetcher
from panelsync.domain.ports import InventoryFetcher
from tests.support.entries import envelope, make_client_factory, make_panels


def _inbounds(*emails: str) -> list[dict[str, object]]:
    clients = [{"id": f"uuid-{email}", "email": email, "enable": True} for email in emails]
    return [
        {
            "id": 1,
            "remark": "main",
            "protocol": "vless",
            "port": 443,
            "settings": json.dumps({"clients": clients}),
        }
    ]


def test_fetches_every_panel_and_stamps_origin() -> None:
    seen: list[tuple[str, str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.host, request.method, request.url.path))
        if request.url.path == "/root/login":
            assert b"username=admin" in request.content
            return envelope()
        if request.url.path == "/root/panel/api/inbounds/list":
            host = request.url.host.split(".")[0]
            return envelope(_inbounds(f"{host}@example.com", "shared@example.com"))
        return httpx.Response(404)

    fetcher = PanelInventoryFetcher(
        config=make_panels("srv-a", "srv-b"),
        client_factory=make_client_factory(handler),
    )

    snapshot = fetcher()

    assert isinstance(fetcher, InventoryFetcher)
    assert not snapshot.is_partial
    assert len(snapshot.entries) == 4
    assert {entry.server_id for entry in snapshot.entries} == {"srv-a", "srv-b"}
    assert ("srv-a.example.test", "POST", "/root/login") in seen
    assert ("srv-b.example.test", "GET", "/root/panel/api/inbounds/list") in seen


def test_failing_panel_is_reported_without_aborting_the_scan() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host.startswith("srv-b"):
            return envelope(success=False, msg="wrong password")
        if request.url.path.endswith("/login"):
            return envelope()
        return envelope(_inbounds("alice@example.com"))

    fetcher = PanelInventoryFetcher(
        config=make_panels("srv-a", "srv-b"),
        client_factory=make_client_factory(handler),
    )

    snapshot = fetcher()

    assert snapshot.is_partial
    assert [entry.server_id for entry in snapshot.entries] == ["srv-a"]
    (failure,) = snapshot.failures
    assert failure.to_dict() == {
        "serverId": "srv-b",
        "serverName": "SRV-B",
        "msg": "wrong password",
    }


def test_http_errors_become_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/login"):
            return envelope()
        return httpx.Response(403)

    fetcher = PanelInventoryFetcher(
        config=make_panels("srv-a"),
        client_factory=make_client_factory(handler),
    )

    snapshot = fetcher()

    assert snapshot.entries == ()
    assert "HTTP 403" in snapshot.failures[0].message


def test_unparseable_payload_becomes_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/login"):
            return envelope()
        return httpx.Response(200, text="<html>login page</html>")

    fetcher = PanelInventoryFetcher(
        config=make_panels("srv-a"),
        client_factory=make_client_factory(handler),
    )

    (failure,) = fetcher().failures

    assert failure.message == "Unexpected panel response payload"


def test_expired_session_logs_in_again_before_listing() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/login"):
            return envelope()
        if calls.count(request.url.path) == 1:
            return httpx.Response(401)
        return envelope(_inbounds("alice@example.com"))

    snapshot = PanelInventoryFetcher(
        config=make_panels("srv-a"),
        client_factory=make_client_factory(handler),
    )()

    assert not snapshot.is_partial
    assert [entry.email for entry in snapshot.entries] == ["alice@example.com"]
    assert calls == [
        "/root/login",
        "/root/panel/api/inbounds/list",
        "/root/login",
        "/root/panel/api/inbounds/list",
    ]
