from unittest.mock import MagicMock

import eth_abi
import pytest

from fakes import STRAT_1, STRAT_2, VAULT_A
from vault_watch.abi import (
    find_function,
    load_strategies_helper_abi,
    load_strategy_abi,
    load_vault_abi,
)
from vault_watch.clients.multicall import (
    Call,
    CallGroup,
    MulticallExecutor,
    decode_result,
    decode_return,
    encode_call,
)
from vault_watch.settings import WatchSettings


def test_encode_call_uses_selector():
    fn_abi = find_function(load_vault_abi(), "totalAssets")

    assert encode_call(fn_abi, ()) == bytes.fromhex("01e1d114")


def test_encode_call_appends_arguments():
    fn_abi = find_function(load_vault_abi(), "creditAvailable")

    data = encode_call(fn_abi, (STRAT_1,))

    assert len(data) == 4 + 32
    assert data[-20:] == bytes.fromhex(STRAT_1[2:])


def test_encode_call_rejects_wrong_arity():
    fn_abi = find_function(load_vault_abi(), "creditAvailable")

    with pytest.raises(ValueError):
        encode_call(fn_abi, ())


def test_decode_scalar_outputs():
    vault_abi = load_vault_abi()
    strategy_abi = load_strategy_abi()

    assert decode_return(
        find_function(vault_abi, "totalAssets"), eth_abi.encode(["uint256"], [2**200])
    ) == 2**200
    assert decode_return(
        find_function(strategy_abi, "name"), eth_abi.encode(["string"], ["StrategyLender"])
    ) == "StrategyLender"
    assert decode_return(
        find_function(strategy_abi, "isActive"), eth_abi.encode(["bool"], [True])
    ) is True


def test_decode_struct_output_is_named():
    fn_abi = find_function(load_vault_abi(), "strategies")
    raw = eth_abi.encode(["(uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256)"], [(1, 2, 6000, 4, 5, 6, 7, 8, 9)])

    decoded = decode_return(fn_abi, raw)

    assert decoded["debtRatio"] == 6000
    assert decoded["totalLoss"] == 9
    assert len(decoded) == 9


def test_decode_address_array():
    fn_abi = find_function(load_strategies_helper_abi(), "assetStrategiesAddresses")
    raw = eth_abi.encode(["address[]"], [[STRAT_1, STRAT_2]])

    decoded = decode_return(fn_abi, raw)

    assert [a.lower() for a in decoded] == [STRAT_1.lower(), STRAT_2.lower()]


def test_decode_result_failures():
    fn_abi = find_function(load_vault_abi(), "totalAssets")

    assert decode_result(fn_abi, False, b"").error == "call reverted"
    assert decode_result(fn_abi, True, b"").error == "empty return data"
    bad = decode_result(fn_abi, True, b"\x01\x02")
    assert bad.success is False
    assert bad.error.startswith("decode failed")


@pytest.fixture
def executor_settings(monkeypatch):
    monkeypatch.delenv("VAULT_WATCH_CONFIG", raising=False)
    return WatchSettings(rpc_url="http://localhost:8545", multicall_chunk_size=2)


@pytest.mark.asyncio
async def test_execute_isolates_failures_and_chunks(executor_settings, monkeypatch):
    executor = MulticallExecutor(executor_settings, w3=MagicMock())
    answers = {
        "totalAssets": (True, eth_abi.encode(["uint256"], [1000])),
        "debtRatio": (False, b""),
        "lastReport": (True, b"\x00"),
    }
    chunks: list[int] = []

    async def fake_try_aggregate(chunk):
        chunks.append(len(chunk))
        return [answers[item.call_reference] for item in chunk]

    monkeypatch.setattr(executor, "_try_aggregate", fake_try_aggregate)

    group = CallGroup(
        reference=VAULT_A,
        contract_address=VAULT_A,
        abi=load_vault_abi(),
        calls=(
            Call("totalAssets", "totalAssets"),
            Call("debtRatio", "debtRatio"),
            Call("lastReport", "lastReport"),
            Call("missing", "doesNotExist"),
        ),
    )

    results = await executor.execute([group])

    bucket = results[VAULT_A]
    assert bucket["totalAssets"].success is True
    assert bucket["totalAssets"].value == 1000
    assert bucket["debtRatio"].success is False
    assert bucket["lastReport"].success is False
    assert bucket["missing"].success is False
    assert bucket["missing"].error.startswith("encode failed")
    assert chunks == [2, 1]


@pytest.mark.asyncio
async def test_execute_invalid_target_fails_only_that_group(executor_settings, monkeypatch):
    executor = MulticallExecutor(executor_settings, w3=MagicMock())

    async def fake_try_aggregate(chunk):
        return [(True, eth_abi.encode(["uint256"], [7])) for _ in chunk]

    monkeypatch.setattr(executor, "_try_aggregate", fake_try_aggregate)

    groups = [
        CallGroup("broken", "0x1234", load_vault_abi(), (Call("totalAssets", "totalAssets"),)),
        CallGroup(VAULT_A, VAULT_A, load_vault_abi(), (Call("totalAssets", "totalAssets"),)),
    ]

    results = await executor.execute(groups)

    assert results["broken"]["totalAssets"].success is False
    assert results[VAULT_A]["totalAssets"].value == 7


@pytest.mark.asyncio
async def test_execute_propagates_transport_errors(executor_settings, monkeypatch):
    executor = MulticallExecutor(executor_settings, w3=MagicMock())

    async def boom(chunk):
        raise RuntimeError("node down")

    monkeypatch.setattr(executor, "_try_aggregate", boom)
    group = CallGroup(VAULT_A, VAULT_A, load_vault_abi(), (Call("totalAssets", "totalAssets"),))

    with pytest.raises(RuntimeError):
        await executor.execute([group])
