"""Panel backend configuration values.

Backends are listed in a TOML file named by ``PANELSYNC_SERVERS_FILE``::

    [[servers]]
    id = "hk-1"
    name = "Hong Kong 1"
    url = "https://hk1.example.com:2053"
    base_path = "/panel-root"
    username = "admin"
    password_env = "PANEL_HK1_PASSWORD"

``password`` may be given inline instead of ``password_env``.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .env import require_env_vars
from .errors import ConfigurationError, InputFileError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

SERVERS_FILE_ENV: Final[str] = "PANELSYNC_SERVERS_FILE"
PANEL_TIMEOUT_SECONDS: Final[float] = 30.0


@dataclass(frozen=True, slots=True)
class PanelServerConfig:
    """Connection settings for one panel backend."""

    id: str
    name: str
    url: str
    username: str
    password: str = field(repr=False)
    base_path: str = "/"
    verify_tls: bool = True

    @property
    def base_url(self) -> str:
        root = self.url.rstrip("/")
        path = self.base_path.strip()
        if not path or path == "/":
            return root
        return f"{root}/{path.strip('/')}"

    def resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name=f"panel:{self.id}",
            base_url=self.base_url,
            timeout_seconds=PANEL_TIMEOUT_SECONDS,
            verify=self.verify_tls,
            retry=RetryPolicy(),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        )


@dataclass(frozen=True, slots=True)
class PanelsConfig:
    servers: tuple[PanelServerConfig, ...]

    def server(self, server_id: str) -> PanelServerConfig | None:
        return next((server for server in self.servers if server.id == server_id), None)


def _require_text(document: dict[str, object], key: str, *, index: int) -> str:
    value = document.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"servers[{index}] is missing '{key}'")
    return value.strip()


def _server_password(document: dict[str, object], *, index: int) -> str:
    password_env = document.get("password_env")
    if isinstance(password_env, str) and password_env.strip():
        return require_env_vars((password_env.strip(),))[password_env.strip()]
    password = document.get("password")
    if isinstance(password, str) and password:
        return password
    raise MissingConfigurationError(f"servers[{index}] has neither 'password' nor 'password_env'")


def parse_servers(document: dict[str, object]) -> tuple[PanelServerConfig, ...]:
    raw_servers = document.get("servers", [])
    if not isinstance(raw_servers, list):
        raise ConfigurationError("'servers' must be an array of tables")

    servers: list[PanelServerConfig] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_servers):
        if not isinstance(raw, dict):
            raise ConfigurationError(f"servers[{index}] must be a table")
        server_id = _require_text(raw, "id", index=index)
        if server_id in seen:
            raise ConfigurationError(f"Duplicate server id: {server_id}")
        seen.add(server_id)
        name = raw.get("name")
        base_path = raw.get("base_path", "/")
        servers.append(
            PanelServerConfig(
                id=server_id,
                name=name.strip() if isinstance(name, str) and name.strip() else server_id,
                url=_require_text(raw, "url", index=index),
                username=_require_text(raw, "username", index=index),
                password=_server_password(raw, index=index),
                base_path=base_path if isinstance(base_path, str) else "/",
                verify_tls=bool(raw.get("verify_tls", True)),
            )
        )
    return tuple(servers)


def get_panels_config(path: Path | None = None) -> PanelsConfig:
    if path is None:
        path = Path(require_env_vars((SERVERS_FILE_ENV,))[SERVERS_FILE_ENV])
    config_path = path.expanduser()
    try:
        with config_path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise MissingConfigurationError(f"Server list not found: {config_path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise InputFileError(
            f"Invalid server list {config_path}: {exc}", path=config_path
        ) from exc

    servers = parse_servers(document)
    if not servers:
        raise MissingConfigurationError(f"No servers configured in {config_path}")
    return PanelsConfig(servers=servers)

