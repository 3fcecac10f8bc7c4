from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..constants import DEPRECATED_VERSION_PREFIX, FILTERED_VAULTS, SUPPORTED_VAULT_TYPE
from ..domain import NormalizedVaultRecord, StrategyRef, VaultCatalogEntry
from ..logger import get_logger
from ..units import parse_fixed_point

logger = get_logger(__name__)


def normalize_allow_list(allow_list: Iterable[str] | None) -> frozenset[str]:
    """Lower-case and dedupe a caller supplied allow-list."""
    if not allow_list:
        return frozenset()
    return frozenset(addr.strip().lower() for addr in allow_list if addr and addr.strip())


def has_valid_version(entry: Mapping[str, Any]) -> bool:
    """Return False when either version field carries the deprecated 0.2 prefix."""
    for key in ("apiVersion", "version"):
        value = entry.get(key)
        if isinstance(value, str) and value.startswith(DEPRECATED_VERSION_PREFIX):
            return False
    return True


def is_included(entry: Mapping[str, Any], allow_list: frozenset[str]) -> bool:
    """Decide whether a catalog record makes it into the pipeline.

    Endorsed v2 vaults with a current version pass, as does anything in the
    allow-list. ``FILTERED_VAULTS`` is a deny list that wins over both.
    """
    address = entry.get("address")
    if not isinstance(address, str) or not address:
        return False
    address = address.lower()
    if address in FILTERED_VAULTS:
        return False
    if address in allow_list:
        return True

    vault_type = entry.get("type")
    return (
        bool(entry.get("endorsed"))
        and isinstance(vault_type, str)
        and vault_type.lower() == SUPPORTED_VAULT_TYPE
        and has_valid_version(entry)
    )


def _parse_tvl(entry: Mapping[str, Any]) -> int:
    tvl = entry.get("tvl")
    raw = tvl.get("total_assets") if isinstance(tvl, Mapping) else None
    if raw is None:
        return 0
    try:
        return parse_fixed_point(raw)
    except ValueError:
        logger.debug(
            "Unparsable TVL %r for vault %s, defaulting to 0", raw, entry.get("address")
        )
        return 0


def _strategy_refs(entry: Mapping[str, Any]) -> tuple[StrategyRef, ...]:
    refs: list[StrategyRef] = []
    seen: set[str] = set()
    for strategy in entry.get("strategies") or ():
        if not isinstance(strategy, Mapping):
            continue
        address = strategy.get("address")
        if not isinstance(address, str) or not address:
            continue
        if address.lower() in seen:
            continue
        seen.add(address.lower())
        refs.append(StrategyRef(address=address, name=strategy.get("name")))
    return tuple(refs)


def normalize_entry(entry: Mapping[str, Any]) -> NormalizedVaultRecord:
    """Reshape one catalog record into a ``NormalizedVaultRecord``."""
    token = entry.get("token")
    return NormalizedVaultRecord(
        address=entry["address"],
        api_version=str(entry.get("version") or entry.get("apiVersion") or ""),
        name=str(entry.get("display_name") or entry.get("name") or ""),
        symbol=str(entry.get("symbol") or ""),
        token=dict(token) if isinstance(token, Mapping) else {},
        icon=entry.get("icon"),
        emergency_shutdown=bool(entry.get("emergency_shutdown", False)),
        endorsed=bool(entry.get("endorsed", False)),
        type=str(entry.get("type") or ""),
        tvl_total_assets=_parse_tvl(entry),
        strategies=_strategy_refs(entry),
    )


def filter_and_map_vaults(
    data: Sequence[VaultCatalogEntry],
    allow_list: frozenset[str] = frozenset(),
) -> list[NormalizedVaultRecord]:
    """Filter the raw index catalog and normalize the surviving records.

    Args:
        data: Records as returned by ``GET /vaults/all``
        allow_list: Lower-cased addresses to include regardless of
            endorsement or version

    Returns:
        Normalized records in catalog order. Malformed records are skipped.
    """
    records: list[NormalizedVaultRecord] = []
    for entry in data:
        if not isinstance(entry, Mapping):
            logger.debug("Skipping non-object catalog entry: %r", entry)
            continue
        if not is_included(entry, allow_list):
            continue
        records.append(normalize_entry(entry))

    logger.debug("Catalog filter kept %d of %d records", len(records), len(data))
    return records


def missing_allow_listed(
    vault_map: Mapping[str, NormalizedVaultRecord],
    allow_list: frozenset[str],
) -> list[str]:
    """Return allow-listed addresses that are absent from the vault map."""
    present = {address.lower() for address in vault_map}
    return sorted(addr for addr in allow_list if addr not in present)
