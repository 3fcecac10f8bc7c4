from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

MULTICALL_ABI_PATH = ABIS_DIR / "Multicall3.json"
VAULT_V032_ABI_PATH = ABIS_DIR / "VaultV032.json"
STRATEGY_ABI_PATH = ABIS_DIR / "Strategy.json"
STRATEGIES_HELPER_ABI_PATH = ABIS_DIR / "StrategiesHelper.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


@lru_cache(maxsize=None)
def _cached_abi(path: Path) -> tuple[dict, ...]:
    return tuple(load_abi(path))


def load_multicall_abi() -> list[dict]:
    """Load the Multicall3 ABI."""
    return list(_cached_abi(MULTICALL_ABI_PATH))


def load_vault_abi() -> list[dict]:
    """Load the v0.3.2 vault ABI.

    Only this vault version exposes every method in ``VAULT_VIEW_METHODS``.
    """
    return list(_cached_abi(VAULT_V032_ABI_PATH))


def load_strategy_abi() -> list[dict]:
    """Load the base strategy ABI."""
    return list(_cached_abi(STRATEGY_ABI_PATH))


def load_strategies_helper_abi() -> list[dict]:
    """Load the StrategiesHelper ABI."""
    return list(_cached_abi(STRATEGIES_HELPER_ABI_PATH))


def find_function(abi: list[dict], name: str) -> dict:
    """Return the ABI entry of the function called ``name``.

    Raises:
        KeyError: If the ABI has no such function.
    """
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == name:
            return entry
    raise KeyError(f"Function {name!r} not found in ABI")
