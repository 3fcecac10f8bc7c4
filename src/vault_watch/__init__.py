"""Vault and strategy data aggregation over batched contract reads."""

from __future__ import annotations

from .cache import (
    VaultCache,
    fetch_all_vaults,
    fetch_vault_by_address,
    get_default_cache,
    invalidate_cache,
)
from .domain import Strategy, StrategyParams, Vault
from .errors import (
    IndexApiError,
    InvalidVaultAddressError,
    VaultNotFoundError,
    VaultStructureError,
    VaultWatchError,
)

__all__ = [
    "IndexApiError",
    "InvalidVaultAddressError",
    "Strategy",
    "StrategyParams",
    "Vault",
    "VaultCache",
    "VaultNotFoundError",
    "VaultStructureError",
    "VaultWatchError",
    "fetch_all_vaults",
    "fetch_vault_by_address",
    "get_default_cache",
    "invalidate_cache",
]
