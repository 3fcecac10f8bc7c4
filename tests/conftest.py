from __future__ import annotations

import logging

import pytest

from vault_watch.settings import WatchSettings
from vault_watch.state import AppState


@pytest.fixture
def settings(monkeypatch) -> WatchSettings:
    monkeypatch.delenv("VAULT_WATCH_CONFIG", raising=False)
    return WatchSettings(
        index_api_url="https://index.example/v1/chains/1",
        rpc_url="http://localhost:8545",
    )


@pytest.fixture
def state(settings: WatchSettings) -> AppState:
    return AppState(settings=settings, logger=logging.getLogger("test"))
