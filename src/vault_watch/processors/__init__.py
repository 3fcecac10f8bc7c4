from __future__ import annotations

from .catalog import filter_and_map_vaults, missing_allow_listed, normalize_allow_list
from .mapper import map_vault_data

__all__ = [
    "filter_and_map_vaults",
    "map_vault_data",
    "missing_allow_listed",
    "normalize_allow_list",
]
