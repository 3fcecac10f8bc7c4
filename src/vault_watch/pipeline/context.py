from __future__ import annotations

from dataclasses import dataclass, field

from web3 import Web3

from ..clients.multicall import BatchResults
from ..domain import NormalizedVaultRecord
from ..state import AppState


def canonical_address(address: str) -> str:
    """Checksum ``address`` when possible, otherwise lower-case it."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError):
        return address.lower()


@dataclass
class LookupMaps:
    """Indices built once per pipeline run and discarded after mapping."""

    vaults: dict[str, NormalizedVaultRecord] = field(default_factory=dict)
    strategy_to_vault: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, records: list[NormalizedVaultRecord]) -> "LookupMaps":
        """Index records by canonical vault address, preserving catalog order.

        A strategy listed under two vaults stays with the first one.
        """
        maps = cls()
        for record in records:
            vault_address = canonical_address(record.address)
            if vault_address in maps.vaults:
                continue
            maps.vaults[vault_address] = record
            for strategy in record.strategies:
                maps.strategy_to_vault.setdefault(
                    canonical_address(strategy.address), vault_address
                )
        return maps


@dataclass
class PipelineContext:
    state: AppState
    allow_list: frozenset[str]
    records: list[NormalizedVaultRecord] | None = None
    maps: LookupMaps | None = None
    call_results: BatchResults | None = None
    helper_results: BatchResults | None = None

    @property
    def records_required(self) -> list[NormalizedVaultRecord]:
        if self.records is None:
            raise RuntimeError(
                "Catalog records have not been set. Ensure load_catalog() is called before accessing this property."
            )
        return self.records

    @property
    def maps_required(self) -> LookupMaps:
        if self.maps is None:
            raise RuntimeError(
                "Lookup maps have not been set. Ensure load_catalog() is called before accessing this property."
            )
        return self.maps

    @property
    def call_results_required(self) -> BatchResults:
        if self.call_results is None:
            raise RuntimeError(
                "Call results have not been set. Ensure execute_calls() is called before accessing this property."
            )
        return self.call_results

    def release(self) -> None:
        """Drop per-run indices and raw results once mapping is done."""
        self.maps = None
        self.call_results = None
        self.helper_results = None
