"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError

from vault_watch.constants import DEFAULT_INDEX_API_URL, MULTICALL3_ADDRESS
from vault_watch.settings import WatchSettings


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("VAULT_WATCH_CONFIG", "VAULT_WATCH_RPC_URL", "VAULT_WATCH_ALLOW_LIST"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = WatchSettings()

    assert settings.index_api_url == DEFAULT_INDEX_API_URL
    assert settings.multicall_address == MULTICALL3_ADDRESS
    assert settings.vaults_endpoint == f"{DEFAULT_INDEX_API_URL}/vaults/all"
    assert settings.allow_list == []


def test_toml_config_loaded(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [vault_watch]
            rpc_url = "https://rpc.example"
            multicall_chunk_size = 50
            allow_list = ["0x5f18c75abdae578b483e5f43f12a39cf75b973a9"]
            """
        ).strip()
    )
    monkeypatch.setenv("VAULT_WATCH_CONFIG", str(config_path))

    settings = WatchSettings()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.multicall_chunk_size == 50
    assert settings.allow_list == ["0x5f18c75abdae578b483e5f43f12a39cf75b973a9"]


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('rpc_url = "https://file.example"\n')
    monkeypatch.setenv("VAULT_WATCH_CONFIG", str(config_path))
    monkeypatch.setenv("VAULT_WATCH_RPC_URL", "https://env.example")

    assert WatchSettings().rpc_url == "https://env.example"
    assert WatchSettings(rpc_url="https://cli.example").rpc_url == "https://cli.example"


def test_local_config_file_is_discovered(tmp_path):
    (tmp_path / "vault-watch.toml").write_text('index_api_url = "https://local.example/"\n')

    assert WatchSettings().index_api_url == "https://local.example"


def test_contract_addresses_are_checksummed():
    settings = WatchSettings(multicall_address=MULTICALL3_ADDRESS.lower())

    assert settings.multicall_address == MULTICALL3_ADDRESS


def test_invalid_addresses_rejected():
    with pytest.raises(ValidationError):
        WatchSettings(strategies_helper_address="0x1234")
    with pytest.raises(ValidationError):
        WatchSettings(allow_list=["not-an-address"])


def test_chunk_size_bounds():
    with pytest.raises(ValidationError):
        WatchSettings(multicall_chunk_size=0)
