"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio

from ..clients.index_api import IndexApiClient
from ..clients.multicall import BatchCallExecutor, BatchResults, MulticallExecutor
from ..domain import Vault
from ..processors.catalog import filter_and_map_vaults, missing_allow_listed
from ..processors.mapper import map_vault_data
from ..state import AppState
from .context import LookupMaps, PipelineContext
from .plan import build_call_plan


async def load_catalog(ctx: PipelineContext, index_client: IndexApiClient) -> None:
    """Fetch, filter and index the catalog."""
    log = ctx.state.logger

    raw = await index_client.fetch_catalog_async()
    ctx.records = filter_and_map_vaults(raw, ctx.allow_list)
    ctx.maps = LookupMaps.build(ctx.records)

    missing = missing_allow_listed(ctx.maps.vaults, ctx.allow_list)
    if missing:
        log.warning("Allow-listed vaults not found in catalog: %s", ", ".join(missing))

    log.info(
        "Catalog: %d vaults, %d strategies after filtering",
        len(ctx.maps.vaults),
        len(ctx.maps.strategy_to_vault),
    )


async def execute_calls(ctx: PipelineContext, executor: BatchCallExecutor) -> None:
    """Run the main batch and the queue helper batch side by side.

    The helper batch only feeds queue positions, so its failure is logged and
    mapping continues with every strategy marked as not queued.
    """
    log = ctx.state.logger
    settings = ctx.state.settings
    plan = build_call_plan(ctx.maps_required, settings.strategies_helper_address)
    log.debug(
        "Call plan: %d main groups, %d helper groups, %d calls",
        len(plan.main),
        len(plan.helper),
        plan.call_count,
    )

    async def _helper() -> BatchResults:
        if not plan.helper:
            return {}
        try:
            return await executor.execute(plan.helper)
        except Exception as e:  # noqa: BLE001 - queue data is optional
            log.error("Strategy queue helper batch failed: %s", e)
            return {}

    main_results, helper_results = await asyncio.gather(
        executor.execute(plan.main), _helper()
    )
    ctx.call_results = main_results
    ctx.helper_results = helper_results


async def run_pipeline(
    state: AppState,
    allow_list: frozenset[str],
    *,
    index_client: IndexApiClient | None = None,
    executor: BatchCallExecutor | None = None,
) -> list[Vault]:
    """Execute the complete vault pipeline.

    Sequence:
    1. Index fetch, filter and normalize
    2. Main batch + queue helper batch (concurrently)
    3. Result mapping and validation

    Args:
        state: Application state containing settings and logger
        allow_list: Lower-cased addresses to include regardless of endorsement
        index_client: Override for the index service client
        executor: Override for the batch call executor

    Returns:
        Validated vaults in catalog order
    """
    settings = state.settings
    log = state.logger
    index_client = index_client or IndexApiClient(settings)

    ctx = PipelineContext(state=state, allow_list=allow_list)

    log.info("Starting vault pipeline", extra={"allow_list": sorted(allow_list)})

    await load_catalog(ctx, index_client)
    if not ctx.maps_required.vaults:
        log.warning("No vaults left after filtering the catalog")
        return []

    executor = executor or MulticallExecutor(settings)
    await execute_calls(ctx, executor)

    try:
        vaults = map_vault_data(
            ctx.call_results_required,
            ctx.helper_results or {},
            ctx.maps_required,
        )
    finally:
        ctx.release()

    log.info("Vault pipeline completed with %d vaults", len(vaults))
    return vaults
