"""Build the batched read calls for a catalog."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..abi import load_strategies_helper_abi, load_strategy_abi, load_vault_abi
from ..clients.multicall import Call, CallGroup
from ..constants import (
    HELPER_GROUP_REFERENCE,
    STRATEGY_PARAM_METHODS,
    STRATEGY_PARAMS_SUFFIX,
    STRATEGY_VIEW_METHODS,
    VAULT_VIEW_METHODS,
)
from .context import LookupMaps


@dataclass(frozen=True)
class CallPlan:
    """Main batch (vault + strategy groups) and the queue helper batch."""

    main: tuple[CallGroup, ...]
    helper: tuple[CallGroup, ...]

    @property
    def call_count(self) -> int:
        return sum(len(g.calls) for g in self.main) + sum(
            len(g.calls) for g in self.helper
        )


def params_reference(strategy_address: str) -> str:
    """Group reference for the vault-side calls about one strategy."""
    return f"{strategy_address}{STRATEGY_PARAMS_SUFFIX}"


def _view_calls(methods: Sequence[str]) -> tuple[Call, ...]:
    return tuple(Call(reference=m, method_name=m) for m in methods)


def build_vault_calls(
    vault_address: str, methods: Sequence[str] = VAULT_VIEW_METHODS
) -> CallGroup:
    return CallGroup(
        reference=vault_address,
        contract_address=vault_address,
        abi=load_vault_abi(),  # only the 0.3.2 ABI has every legacy view method
        calls=_view_calls(methods),
    )


def build_strategy_calls(strategy_address: str, vault_address: str) -> list[CallGroup]:
    """Calls on the strategy itself plus the vault's bookkeeping for it."""
    return [
        CallGroup(
            reference=strategy_address,
            contract_address=strategy_address,
            abi=load_strategy_abi(),
            calls=_view_calls(STRATEGY_VIEW_METHODS),
        ),
        CallGroup(
            reference=params_reference(strategy_address),
            contract_address=vault_address,
            abi=load_vault_abi(),
            calls=tuple(
                Call(reference=m, method_name=m, method_parameters=(strategy_address,))
                for m in STRATEGY_PARAM_METHODS
            ),
        ),
    ]


def build_queue_helper_calls(
    vault_addresses: Sequence[str], helper_address: str
) -> CallGroup:
    """One ``assetStrategiesAddresses`` call per vault, referenced by vault."""
    return CallGroup(
        reference=HELPER_GROUP_REFERENCE,
        contract_address=helper_address,
        abi=load_strategies_helper_abi(),
        calls=tuple(
            Call(
                reference=address,
                method_name="assetStrategiesAddresses",
                method_parameters=(address,),
            )
            for address in vault_addresses
        ),
    )


def build_call_plan(
    maps: LookupMaps,
    helper_address: str,
    vault_methods: Sequence[str] = VAULT_VIEW_METHODS,
) -> CallPlan:
    """Build every call the result mapper needs.

    Args:
        maps: Lookup maps for this run; addresses are already canonical
        helper_address: StrategiesHelper contract address
        vault_methods: Vault view methods to read

    Returns:
        The plan; vault and strategy groups share one batch, queue lookups
        go in a separate one.
    """
    main: list[CallGroup] = [
        build_vault_calls(address, vault_methods) for address in maps.vaults
    ]
    for strategy_address, vault_address in maps.strategy_to_vault.items():
        main.extend(build_strategy_calls(strategy_address, vault_address))

    helper: tuple[CallGroup, ...] = ()
    if maps.vaults:
        helper = (build_queue_helper_calls(list(maps.vaults), helper_address),)

    return CallPlan(main=tuple(main), helper=helper)
