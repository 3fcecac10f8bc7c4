"""Process-wide memoization of pipeline results.

Results are cached per normalized allow-list for the lifetime of the cache
(there is no TTL). Concurrent callers asking for the same allow-list share
one in-flight pipeline run. ``invalidate`` is the only way to force a new
fetch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from web3 import Web3

from .clients.index_api import IndexApiClient
from .clients.multicall import BatchCallExecutor
from .domain import Vault
from .errors import InvalidVaultAddressError, VaultNotFoundError
from .logger import get_logger
from .pipeline.run import run_pipeline
from .processors.catalog import normalize_allow_list
from .settings import WatchSettings
from .state import AppState

logger = get_logger(__name__)

CacheKey = frozenset[str]


class VaultCache:
    """Memoizes ``run_pipeline`` and single-vault lookups."""

    def __init__(
        self,
        state: AppState,
        *,
        index_client: IndexApiClient | None = None,
        executor: BatchCallExecutor | None = None,
    ):
        self.state = state
        self._index_client = index_client
        self._executor = executor
        self._results: dict[CacheKey, tuple[Vault, ...]] = {}
        self._pending: dict[CacheKey, asyncio.Task[tuple[Vault, ...]]] = {}
        self._by_address: dict[str, Vault] = {}
        self._generation = 0

    def _key(self, allow_list: Iterable[str] | None) -> CacheKey:
        if allow_list is None:
            allow_list = self.state.settings.allow_list
        return normalize_allow_list(allow_list)

    async def _run(self, key: CacheKey) -> tuple[Vault, ...]:
        generation = self._generation
        vaults = await run_pipeline(
            self.state,
            key,
            index_client=self._index_client,
            executor=self._executor,
        )
        result = tuple(vaults)
        if generation == self._generation:
            self._results[key] = result
        return result

    def _on_done(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def fetch_all_vaults(
        self, allow_list: Iterable[str] | None = None
    ) -> tuple[Vault, ...]:
        """Return all vaults for ``allow_list``, running the pipeline at most once.

        Args:
            allow_list: Extra vault addresses to include; ``None`` uses the
                configured ``allow_list``. Order and case do not matter.

        Returns:
            The same tuple for every call with an equivalent allow-list
        """
        key = self._key(allow_list)
        cached = self._results.get(key)
        if cached is not None:
            logger.debug("Vault cache hit for allow-list of %d", len(key))
            return cached

        task = self._pending.get(key)
        if task is None:
            logger.debug("Vault cache miss for allow-list of %d", len(key))
            task = asyncio.ensure_future(self._run(key))
            self._pending[key] = task
            task.add_done_callback(lambda t, k=key: self._on_done(k, t))
        return await asyncio.shield(task)

    async def fetch_vault_by_address(self, address: str) -> Vault:
        """Return the vault at ``address`` (case-insensitive).

        Raises:
            InvalidVaultAddressError: If ``address`` is not a valid address;
                raised before any network call
            VaultNotFoundError: If no vault in the catalog matches
        """
        if not isinstance(address, str) or not address or not Web3.is_address(address):
            raise InvalidVaultAddressError(address)

        key = address.lower()
        found = self._by_address.get(key)
        if found is not None:
            return found

        for vault in await self.fetch_all_vaults():
            if vault.address.lower() == key:
                self._by_address[key] = vault
                return vault
        raise VaultNotFoundError(address)

    def invalidate(self) -> None:
        """Forget every cached result; in-flight runs finish but are not reused."""
        self._results.clear()
        self._pending.clear()
        self._by_address.clear()
        self._generation += 1
        logger.info("Vault cache invalidated")


_default_cache: VaultCache | None = None


def get_default_cache() -> VaultCache:
    """Return the process-wide cache, creating it from ``WatchSettings`` on first use."""
    global _default_cache
    if _default_cache is None:
        settings = WatchSettings()
        _default_cache = VaultCache(
            AppState(settings=settings, logger=get_logger("vault_watch"))
        )
    return _default_cache


def set_default_cache(cache: VaultCache | None) -> None:
    """Replace the process-wide cache (``None`` resets it)."""
    global _default_cache
    _default_cache = cache


async def fetch_all_vaults(allow_list: Iterable[str] | None = None) -> tuple[Vault, ...]:
    return await get_default_cache().fetch_all_vaults(allow_list)


async def fetch_vault_by_address(address: str) -> Vault:
    return await get_default_cache().fetch_vault_by_address(address)


def invalidate_cache() -> None:
    if _default_cache is not None:
        _default_cache.invalidate()
