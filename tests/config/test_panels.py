from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from panelsync.config import (
    ConfigurationError,
    InputFileError,
    MissingConfigurationError,
    get_panels_config,
)
from panelsync.config.panels import SERVERS_FILE_ENV, PanelServerConfig

if TYPE_CHECKING:
    from pathlib import Path


SERVERS_TOML = """
[[servers]]
id = "hk-1"
name = "Hong Kong 1"
url = "https://hk1.example.com:2053/"
base_path = "/panel-root/"
username = "admin"
password_env = "PANEL_HK1_PASSWORD"

[[servers]]
id = "de-1"
url = "https://de1.example.com"
username = "root"
password = "inline"
verify_tls = false
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "servers.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_loads_servers_from_env_named_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(SERVERS_FILE_ENV, str(_write(tmp_path, SERVERS_TOML)))
    monkeypatch.setenv("PANEL_HK1_PASSWORD", "from-env")

    config = get_panels_config()

    hk, de = config.servers
    assert hk.password == "from-env"
    assert hk.base_url == "https://hk1.example.com:2053/panel-root"
    assert de.name == "de-1"
    assert de.base_url == "https://de1.example.com"
    assert de.verify_tls is False
    assert config.server("de-1") is de
    assert config.server("nope") is None


def test_password_is_not_in_repr() -> None:
    server = PanelServerConfig(id="x", name="x", url="https://x", username="u", password="secret")
    assert "secret" not in repr(server)


def test_resilience_only_retries_idempotent_requests() -> None:
    server = PanelServerConfig(id="x", name="x", url="https://x", username="u", password="p")

    resilience = server.resilience()

    assert resilience.base_url == "https://x"
    assert "POST" not in resilience.retry.allowed_methods
    assert resilience.ratelimit is not None


def test_missing_password_env_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PANEL_HK1_PASSWORD", raising=False)

    with pytest.raises(MissingConfigurationError, match="PANEL_HK1_PASSWORD"):
        get_panels_config(_write(tmp_path, SERVERS_TOML))


def test_duplicate_ids_are_rejected(tmp_path: Path) -> None:
    content = """
[[servers]]
id = "a"
url = "https://a"
username = "u"
password = "p"

[[servers]]
id = "a"
url = "https://b"
username = "u"
password = "p"
"""
    with pytest.raises(ConfigurationError, match="Duplicate server id"):
        get_panels_config(_write(tmp_path, content))


@pytest.mark.parametrize(
    ("content", "error"),
    [
        ("servers = 'nope'", ConfigurationError),
        ("[[servers]]\nid = 'a'\nusername = 'u'\npassword = 'p'", ConfigurationError),
        ("", MissingConfigurationError),
        ("not toml = = =", InputFileError),
    ],
)
def test_invalid_server_lists(
    tmp_path: Path, content: str, error: type[ConfigurationError]
) -> None:
    with pytest.raises(error):
        get_panels_config(_write(tmp_path, content))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MissingConfigurationError, match="not found"):
        get_panels_config(tmp_path / "absent.toml")


def test_unparsable_file_names_its_path(tmp_path: Path) -> None:
    path = _write(tmp_path, "[[servers]\n")

    with pytest.raises(InputFileError, match="Invalid server list") as excinfo:
        get_panels_config(path)

    assert excinfo.value.path == path
