"""Batched read-only contract calls through Multicall3.

Callers describe work as ``CallGroup`` objects (one target contract, one ABI,
many named calls) and get back results keyed by group reference and call
reference. Each call succeeds or fails on its own: a revert or an undecodable
return value becomes a failed ``CallResult`` without touching its neighbours.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import backoff
import eth_abi
import requests
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_abi_to_4byte_selector
from eth_utils.abi import collapse_if_tuple
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ..abi import find_function, load_multicall_abi
from ..logger import TRACE, get_logger
from ..settings import WatchSettings

logger = get_logger(__name__)


@dataclass(frozen=True)
class Call:
    """One contract method invocation inside a group."""

    reference: str
    method_name: str
    method_parameters: tuple[Any, ...] = ()


@dataclass(frozen=True)
class CallGroup:
    """Calls against a single contract sharing one ABI."""

    reference: str
    contract_address: str
    abi: list[dict] = field(compare=False, repr=False)
    calls: tuple[Call, ...] = ()


@dataclass(frozen=True)
class CallResult:
    """Decoded value of one call, or the reason it has none."""

    success: bool
    value: Any = None
    error: str | None = None


# group reference -> call reference -> result
BatchResults = dict[str, dict[str, CallResult]]


class BatchCallExecutor(Protocol):
    """Anything that can run call groups in batched round-trips."""

    async def execute(self, groups: Sequence[CallGroup]) -> BatchResults: ...


@dataclass(frozen=True)
class _EncodedCall:
    group_reference: str
    call_reference: str
    target: str
    data: bytes
    fn_abi: dict


def encode_call(fn_abi: dict, params: Sequence[Any]) -> bytes:
    """Return selector + ABI encoded arguments for a function call."""
    input_types = [collapse_if_tuple(arg) for arg in fn_abi.get("inputs", [])]
    if len(input_types) != len(params):
        raise ValueError(
            f"{fn_abi.get('name')} expects {len(input_types)} arguments, got {len(params)}"
        )
    selector = function_abi_to_4byte_selector(fn_abi)
    return selector + eth_abi.encode(input_types, list(params))


def decode_return(fn_abi: dict, return_data: bytes) -> Any:
    """Decode raw return data for ``fn_abi``.

    A single output is unwrapped; a single struct output becomes a dict keyed
    by component name; several outputs come back as a tuple.

    Raises:
        DecodingError: If the data does not match the output types.
    """
    outputs = fn_abi.get("outputs", [])
    output_types = [collapse_if_tuple(out) for out in outputs]
    values = eth_abi.decode(output_types, bytes(return_data))
    if len(outputs) != 1:
        return tuple(values)

    value = values[0]
    components = outputs[0].get("components")
    if outputs[0].get("type") == "tuple" and components:
        return {comp["name"]: item for comp, item in zip(components, value)}
    if isinstance(value, tuple):
        return list(value)
    return value


def decode_result(fn_abi: dict, success: bool, return_data: bytes) -> CallResult:
    """Turn one ``tryAggregate`` entry into a ``CallResult``."""
    if not success:
        return CallResult(success=False, error="call reverted")
    if not return_data:
        return CallResult(success=False, error="empty return data")
    try:
        return CallResult(success=True, value=decode_return(fn_abi, return_data))
    except (DecodingError, ValueError, OverflowError) as e:
        return CallResult(success=False, error=f"decode failed: {e}")


class MulticallExecutor:
    """``BatchCallExecutor`` backed by Multicall3 ``tryAggregate``."""

    def __init__(self, settings: WatchSettings, w3: Web3 | None = None):
        """Initialize the executor.

        Args:
            settings: Settings providing the RPC endpoint and multicall tuning
            w3: Optional pre-built Web3 instance (mainly for tests)
        """
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(
                settings.rpc_url,
                request_kwargs={"timeout": settings.request_timeout},
            )
        )
        self.multicall = self.w3.eth.contract(
            address=Web3.to_checksum_address(settings.multicall_address),
            abi=load_multicall_abi(),
        )
        self._chunk_size = settings.multicall_chunk_size
        self._rpc_sem = asyncio.Semaphore(settings.rpc_max_concurrent_calls)

    @backoff.on_exception(
        backoff.expo,
        (ProviderConnectionError, requests.ConnectionError, requests.Timeout),
        max_time=30,
        jitter=backoff.full_jitter,
    )
    async def _rpc(self, fn, *args, **kwargs):
        """Throttle + backoff a single RPC."""
        async with self._rpc_sem:
            return await asyncio.to_thread(fn, *args, **kwargs)

    async def _try_aggregate(self, chunk: list[_EncodedCall]) -> list[tuple[bool, bytes]]:
        payload = [(item.target, item.data) for item in chunk]
        raw = await self._rpc(
            self.multicall.functions.tryAggregate(False, payload).call
        )
        if len(raw) != len(chunk):
            raise ValueError(
                f"Multicall returned {len(raw)} results for {len(chunk)} calls"
            )
        return [(bool(success), bytes(data)) for success, data in raw]

    def _encode_groups(
        self, groups: Sequence[CallGroup], results: BatchResults
    ) -> list[_EncodedCall]:
        encoded: list[_EncodedCall] = []
        for group in groups:
            bucket = results.setdefault(group.reference, {})
            try:
                target = Web3.to_checksum_address(group.contract_address)
            except ValueError as e:
                for call in group.calls:
                    bucket[call.reference] = CallResult(
                        success=False, error=f"invalid target: {e}"
                    )
                continue

            for call in group.calls:
                try:
                    fn_abi = find_function(group.abi, call.method_name)
                    data = encode_call(fn_abi, call.method_parameters)
                except (KeyError, ValueError, TypeError, EncodingError) as e:
                    logger.debug(
                        "Could not encode %s.%s: %s",
                        group.reference,
                        call.reference,
                        e,
                    )
                    bucket[call.reference] = CallResult(
                        success=False, error=f"encode failed: {e}"
                    )
                    continue
                encoded.append(
                    _EncodedCall(
                        group_reference=group.reference,
                        call_reference=call.reference,
                        target=target,
                        data=data,
                        fn_abi=fn_abi,
                    )
                )
        return encoded

    async def execute(self, groups: Sequence[CallGroup]) -> BatchResults:
        """Run every call of every group and decode the results.

        Args:
            groups: Call groups to execute

        Returns:
            Results keyed by group reference, then call reference

        Raises:
            ProviderConnectionError: If the RPC stays unreachable after retries
        """
        results: BatchResults = {}
        encoded = self._encode_groups(groups, results)
        if not encoded:
            return results

        chunks = [
            encoded[i : i + self._chunk_size]
            for i in range(0, len(encoded), self._chunk_size)
        ]
        logger.debug(
            "Executing %d calls across %d groups in %d multicall chunk(s)",
            len(encoded),
            len(groups),
            len(chunks),
        )

        raw_chunks = await asyncio.gather(*[self._try_aggregate(c) for c in chunks])

        failures = 0
        for chunk, raw in zip(chunks, raw_chunks):
            for item, (success, return_data) in zip(chunk, raw):
                result = decode_result(item.fn_abi, success, return_data)
                if not result.success:
                    failures += 1
                    logger.log(
                        TRACE,
                        "Call %s.%s failed: %s",
                        item.group_reference,
                        item.call_reference,
                        result.error,
                    )
                results[item.group_reference][item.call_reference] = result

        if failures:
            logger.debug("%d of %d calls failed or did not decode", failures, len(encoded))
        return results
