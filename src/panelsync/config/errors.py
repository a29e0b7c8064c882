"""Errors raised while loading panelsync settings and input files."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ConfigurationError(RuntimeError):
    """Raised when settings or inputs cannot be used to reach the panels."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required setting, server list or panel credential is absent."""


class InputFileError(ConfigurationError):
    """A server list or snapshot file exists but cannot be read or parsed."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path
