"""Domain models for the vault pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from ..constants import NOT_QUEUED

# Raw index-service record; read through ``.get`` only
VaultCatalogEntry = dict[str, Any]


@dataclass(frozen=True)
class StrategyRef:
    """Strategy reference nested in a catalog record."""

    address: str
    name: str | None = None


@dataclass(frozen=True)
class NormalizedVaultRecord:
    """Catalog record reshaped into internal field names."""

    address: str
    api_version: str
    name: str
    symbol: str
    token: dict[str, Any]
    icon: str | None
    emergency_shutdown: bool
    endorsed: bool
    type: str
    tvl_total_assets: int  # base units of the vault token
    strategies: tuple[StrategyRef, ...] = ()


@dataclass(frozen=True)
class StrategyParams:
    """Per-strategy accounting kept by the vault (``vault.strategies(addr)``)."""

    performance_fee: int = 0
    activation: int = 0
    debt_ratio: int = 0
    min_debt_per_harvest: int = 0
    max_debt_per_harvest: int = 0
    last_report: int = 0
    total_debt: int = 0
    total_gain: int = 0
    total_loss: int = 0


@dataclass(frozen=True)
class Strategy:
    """A strategy attached to a vault.

    ``queue_index`` is the position in the vault's withdrawal queue, or
    ``NOT_QUEUED`` when the strategy could not be found in it.
    """

    address: str
    vault: str
    reported_vault: str = ""  # on-chain vault(); empty when the read failed
    name: str = ""
    api_version: str = ""
    strategist: str = ""
    rewards: str = ""
    keeper: str = ""
    emergency_exit: bool = False
    is_active: bool = False
    estimated_total_assets: int = 0
    delegated_assets: int = 0
    credit_available: int = 0
    debt_outstanding: int = 0
    expected_return: int = 0
    params: StrategyParams = field(default_factory=StrategyParams)
    queue_index: int = NOT_QUEUED
    debt_usage: int = 0  # bps of the vault's total debt
    last_report_text: str = ""
    defaulted_fields: tuple[str, ...] = ()

    @property
    def is_queued(self) -> bool:
        return self.queue_index != NOT_QUEUED


@dataclass(frozen=True)
class Vault:
    """A vault with its on-chain state and ordered strategies."""

    address: str
    api_version: str
    symbol: str
    name: str
    token: dict[str, Any]
    icon: str | None
    emergency_shutdown: bool
    tvl_total_assets: int
    management: str = ""
    management_fee: int = 0
    performance_fee: int = 0
    governance: str = ""
    guardian: str = ""
    rewards: str = ""
    deposit_limit: int = 0
    total_assets: int = 0
    debt_ratio: int = 0
    total_debt: int = 0
    last_report: int = 0
    last_report_text: str = ""
    strategies: tuple[Strategy, ...] = ()
    debt_usage: int = 0  # sum of strategy debt ratios, bps
    defaulted_fields: tuple[str, ...] = ()
    config_ok: bool = True
    config_warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict; integers stay integers."""
        return asdict(self)


__all__ = [
    "NormalizedVaultRecord",
    "Strategy",
    "StrategyParams",
    "StrategyRef",
    "Vault",
    "VaultCatalogEntry",
]
