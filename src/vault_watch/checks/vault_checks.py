"""Last gate before an assembled vault is handed to callers.

Structural problems raise ``VaultStructureError``. Configuration smells are
recorded on the vault as warnings and flip ``config_ok``.
"""

from __future__ import annotations

from dataclasses import replace

from web3 import Web3

from ..constants import MAX_BPS, ZERO_ADDRESS
from ..domain import Strategy, Vault
from ..errors import VaultStructureError


def _check_structure(vault: Vault) -> str:
    """Return the checksummed vault address or raise on broken invariants."""
    if not isinstance(vault.address, str) or not Web3.is_address(vault.address):
        raise VaultStructureError(str(vault.address), "invalid vault address")
    address = Web3.to_checksum_address(vault.address)

    seen: set[str] = set()
    for strategy in vault.strategies:
        if not Web3.is_address(strategy.address):
            raise VaultStructureError(
                address, f"invalid strategy address {strategy.address!r}"
            )
        key = strategy.address.lower()
        if key == address.lower():
            raise VaultStructureError(address, "vault lists itself as a strategy")
        if key in seen:
            raise VaultStructureError(address, f"duplicate strategy {strategy.address}")
        seen.add(key)
    return address


def _is_unset(address: str) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


def _config_warnings(vault: Vault) -> list[str]:
    warnings: list[str] = []

    if vault.debt_usage > MAX_BPS:
        warnings.append(
            f"strategy debt ratios sum to {vault.debt_usage} bps (> {MAX_BPS})"
        )
    if vault.management_fee > MAX_BPS:
        warnings.append(f"management fee {vault.management_fee} bps exceeds {MAX_BPS}")
    if vault.performance_fee > MAX_BPS:
        warnings.append(
            f"performance fee {vault.performance_fee} bps exceeds {MAX_BPS}"
        )
    if "governance" not in vault.defaulted_fields and _is_unset(vault.governance):
        warnings.append("governance is not set")
    if "management" not in vault.defaulted_fields and _is_unset(vault.management):
        warnings.append("management is not set")
    if (
        "depositLimit" not in vault.defaulted_fields
        and vault.deposit_limit == 0
        and not vault.emergency_shutdown
    ):
        warnings.append("deposit limit is zero")

    for strategy in vault.strategies:
        warnings.extend(_strategy_warnings(strategy, vault.address))
    return warnings


def _strategy_warnings(strategy: Strategy, vault_address: str) -> list[str]:
    warnings: list[str] = []
    if strategy.reported_vault and strategy.reported_vault.lower() != vault_address.lower():
        warnings.append(
            f"strategy {strategy.address} reports vault {strategy.reported_vault}"
        )
    if strategy.params.debt_ratio > 0 and not strategy.is_queued:
        warnings.append(
            f"strategy {strategy.address} has debt ratio "
            f"{strategy.params.debt_ratio} but is not in the withdrawal queue"
        )
    if strategy.emergency_exit and strategy.params.debt_ratio > 0:
        warnings.append(
            f"strategy {strategy.address} is in emergency exit with debt ratio "
            f"{strategy.params.debt_ratio}"
        )
    return warnings


def vault_checks(vault: Vault) -> Vault:
    """Validate a candidate vault.

    Args:
        vault: The assembled vault

    Returns:
        A copy with a checksummed address and config warnings filled in

    Raises:
        VaultStructureError: If the vault breaks a structural invariant
    """
    address = _check_structure(vault)
    warnings = _config_warnings(vault)
    return replace(
        vault,
        address=address,
        config_ok=not warnings,
        config_warnings=tuple(warnings),
    )
