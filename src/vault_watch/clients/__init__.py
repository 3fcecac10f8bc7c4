from __future__ import annotations

from .index_api import IndexApiClient
from .multicall import (
    BatchCallExecutor,
    BatchResults,
    Call,
    CallGroup,
    CallResult,
    MulticallExecutor,
)

__all__ = [
    "BatchCallExecutor",
    "BatchResults",
    "Call",
    "CallGroup",
    "CallResult",
    "IndexApiClient",
    "MulticallExecutor",
]
