"""Rebuild vaults and strategies from raw batched call results."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from web3 import Web3

from ..checks.vault_checks import vault_checks
from ..clients.multicall import BatchResults, CallResult
from ..constants import HELPER_GROUP_REFERENCE, NOT_QUEUED
from ..domain import NormalizedVaultRecord, Strategy, StrategyParams, Vault
from ..errors import VaultStructureError
from ..logger import get_logger
from ..pipeline.context import LookupMaps, canonical_address
from ..pipeline.plan import params_reference
from ..units import bps_share, to_human_date_text

logger = get_logger(__name__)

T = TypeVar("T")

STRATEGY_PARAM_FIELDS = {
    "performanceFee": "performance_fee",
    "activation": "activation",
    "debtRatio": "debt_ratio",
    "minDebtPerHarvest": "min_debt_per_harvest",
    "maxDebtPerHarvest": "max_debt_per_harvest",
    "lastReport": "last_report",
    "totalDebt": "total_debt",
    "totalGain": "total_gain",
    "totalLoss": "total_loss",
}


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not an amount")
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    return int(value)


def _to_address(value: Any) -> str:
    return Web3.to_checksum_address(value)


def _to_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected bool, got {type(value).__name__}")
    return value


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).rstrip(b"\x00").decode("utf-8")
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value


class FieldMerger:
    """Reads decoded call results and substitutes defaults for gaps.

    Every substitution is recorded in ``defaulted`` so callers can see which
    fields are real on-chain values and which are placeholders.
    """

    def __init__(self, bucket: Mapping[str, CallResult] | None, prefix: str = ""):
        self._bucket = bucket or {}
        self._prefix = prefix
        self.defaulted: list[str] = []

    def get(
        self,
        reference: str,
        default: T,
        convert: Callable[[Any], T],
    ) -> T:
        result = self._bucket.get(reference)
        if result is None or not result.success:
            self.defaulted.append(f"{self._prefix}{reference}")
            return default
        try:
            return convert(result.value)
        except (TypeError, ValueError, UnicodeDecodeError) as e:
            logger.debug("Could not convert %s%s=%r: %s", self._prefix, reference, result.value, e)
            self.defaulted.append(f"{self._prefix}{reference}")
            return default


def map_queue_indexes(vault_address: str, helper_results: BatchResults) -> dict[str, int]:
    """Map lower-cased strategy address to its position in the vault queue.

    Returns an empty dict when the helper call for this vault failed.
    """
    result = helper_results.get(HELPER_GROUP_REFERENCE, {}).get(vault_address)
    if result is None or not result.success or not isinstance(result.value, (list, tuple)):
        return {}
    indexes: dict[str, int] = {}
    for position, address in enumerate(result.value):
        if isinstance(address, str):
            indexes.setdefault(address.lower(), position)
    return indexes


def _map_params(merger: FieldMerger) -> StrategyParams:
    raw = merger.get("strategies", None, _require_mapping)
    if raw is None:
        return StrategyParams()
    values: dict[str, int] = {}
    for source, target in STRATEGY_PARAM_FIELDS.items():
        try:
            values[target] = _to_int(raw[source])
        except (KeyError, TypeError, ValueError):
            merger.defaulted.append(f"params.{source}")
    return StrategyParams(**values)


def _require_mapping(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"expected struct, got {type(value).__name__}")
    return value


def map_strategy(
    strategy_address: str,
    vault_address: str,
    call_results: BatchResults,
    queue_indexes: Mapping[str, int],
    vault_total_debt: int,
) -> Strategy:
    """Decode one strategy from its own group and its vault-side params group."""
    own = FieldMerger(call_results.get(strategy_address))
    vault_side = FieldMerger(call_results.get(params_reference(strategy_address)))

    params = _map_params(vault_side)

    strategy = Strategy(
        address=strategy_address,
        vault=vault_address,
        reported_vault=own.get("vault", "", _to_address),
        name=own.get("name", "", _to_str),
        api_version=own.get("apiVersion", "", _to_str),
        strategist=own.get("strategist", "", _to_address),
        rewards=own.get("rewards", "", _to_address),
        keeper=own.get("keeper", "", _to_address),
        emergency_exit=own.get("emergencyExit", False, _to_bool),
        is_active=own.get("isActive", False, _to_bool),
        estimated_total_assets=own.get("estimatedTotalAssets", 0, _to_int),
        delegated_assets=own.get("delegatedAssets", 0, _to_int),
        credit_available=vault_side.get("creditAvailable", 0, _to_int),
        debt_outstanding=vault_side.get("debtOutstanding", 0, _to_int),
        expected_return=vault_side.get("expectedReturn", 0, _to_int),
        params=params,
        queue_index=queue_indexes.get(strategy_address.lower(), NOT_QUEUED),
        debt_usage=bps_share(params.total_debt, vault_total_debt),
        last_report_text=to_human_date_text(params.last_report),
        defaulted_fields=tuple(own.defaulted + vault_side.defaulted),
    )
    return strategy


def queue_sort_key(strategy: Strategy) -> tuple[bool, int]:
    """Queued strategies first by position, unqueued ones after."""
    return (strategy.queue_index == NOT_QUEUED, strategy.queue_index)


def get_total_debt_usage(strategies: list[Strategy]) -> int:
    """Sum of the strategies' debt ratios in basis points.

    The vault's own ``debtRatio`` drops to 0 during emergency shutdown, so the
    usage is rebuilt from the strategies instead.
    """
    return sum(strategy.params.debt_ratio for strategy in strategies)


def map_vault(
    vault_address: str,
    record: NormalizedVaultRecord,
    call_results: BatchResults,
    helper_results: BatchResults,
    maps: LookupMaps,
) -> Vault:
    """Assemble one candidate vault; validation happens in ``map_vault_data``."""
    merger = FieldMerger(call_results.get(vault_address))
    total_debt = merger.get("totalDebt", 0, _to_int)

    queue_indexes = map_queue_indexes(vault_address, helper_results)

    strategies: list[Strategy] = []
    for ref in record.strategies:
        strategy_address = canonical_address(ref.address)
        owner = maps.strategy_to_vault.get(strategy_address)
        if owner != vault_address:
            logger.debug(
                "Strategy %s already mapped to vault %s, skipping under %s",
                strategy_address,
                owner,
                vault_address,
            )
            continue
        strategies.append(
            map_strategy(
                strategy_address, vault_address, call_results, queue_indexes, total_debt
            )
        )
    strategies.sort(key=queue_sort_key)

    last_report = merger.get("lastReport", 0, _to_int)

    vault = Vault(
        address=vault_address,
        api_version=record.api_version,
        symbol=record.symbol,
        name=record.name,
        token=record.token,
        icon=record.icon,
        emergency_shutdown=record.emergency_shutdown,
        tvl_total_assets=record.tvl_total_assets,
        management=merger.get("management", "", _to_address),
        management_fee=merger.get("managementFee", 0, _to_int),
        performance_fee=merger.get("performanceFee", 0, _to_int),
        governance=merger.get("governance", "", _to_address),
        guardian=merger.get("guardian", "", _to_address),
        rewards=merger.get("rewards", "", _to_address),
        deposit_limit=merger.get("depositLimit", 0, _to_int),
        total_assets=merger.get("totalAssets", 0, _to_int),
        debt_ratio=merger.get("debtRatio", 0, _to_int),
        total_debt=total_debt,
        last_report=last_report,
        last_report_text=to_human_date_text(last_report),
        strategies=tuple(strategies),
        debt_usage=get_total_debt_usage(strategies),
        defaulted_fields=tuple(merger.defaulted),
    )

    if merger.defaulted:
        logger.debug(
            "Vault %s: defaulted %d field(s): %s",
            vault_address,
            len(merger.defaulted),
            ", ".join(merger.defaulted),
        )
    return vault


def map_vault_data(
    call_results: BatchResults,
    helper_results: BatchResults,
    maps: LookupMaps,
) -> list[Vault]:
    """Build validated vaults in catalog order.

    A vault that fails structural validation is logged and left out; the
    rest of the catalog is still returned.
    """
    vaults: list[Vault] = []
    for vault_address, record in maps.vaults.items():
        candidate = map_vault(vault_address, record, call_results, helper_results, maps)
        try:
            vaults.append(vault_checks(candidate))
        except VaultStructureError as e:
            logger.error("Skipping vault %s: %s", vault_address, e.reason)

    logger.info("Mapped %d of %d vaults", len(vaults), len(maps.vaults))
    return vaults
