from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_panelsync_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer settings from leaking into tests."""

    for name in list(os.environ):
        if name.startswith("PANELSYNC_"):
            monkeypatch.delenv(name)
