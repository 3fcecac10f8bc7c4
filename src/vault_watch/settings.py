"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from web3 import Web3

from .constants import (
    DEFAULT_INDEX_API_URL,
    DEFAULT_MAINNET_RPC_URL,
    MAINNET_STRATEGIES_HELPER,
    MULTICALL3_ADDRESS,
)

load_dotenv()


class WatchSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with VAULT_WATCH_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- endpoints ---
    index_api_url: str = DEFAULT_INDEX_API_URL
    rpc_url: str = DEFAULT_MAINNET_RPC_URL
    request_timeout: float = Field(default=15.0, gt=0)

    # --- contracts ---
    multicall_address: str = MULTICALL3_ADDRESS
    strategies_helper_address: str = MAINNET_STRATEGIES_HELPER

    # --- catalog ---
    allow_list: list[str] = Field(default_factory=list)

    # --- RPC settings ---
    multicall_chunk_size: int = Field(default=200, ge=1, le=2000)
    rpc_max_concurrent_calls: int = Field(default=4, ge=1)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="VAULT_WATCH_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("multicall_address", "strategies_helper_address")
    @classmethod
    def checksum_contract_address(cls, v: str) -> str:
        if not Web3.is_address(v):
            raise ValueError(f"{v!r} is not a valid contract address")
        return Web3.to_checksum_address(v)

    @field_validator("allow_list")
    @classmethod
    def validate_allow_list(cls, v: list[str]) -> list[str]:
        invalid = [addr for addr in v if not Web3.is_address(addr)]
        if invalid:
            raise ValueError(f"allow_list contains invalid addresses: {invalid}")
        return v

    @field_validator("index_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("VAULT_WATCH_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("vault-watch.toml")
                    user_config = Path.home() / ".config" / "vault-watch" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [vault_watch]
                body = data.get("vault_watch", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    @property
    def vaults_endpoint(self) -> str:
        return f"{self.index_api_url}/vaults/all"
