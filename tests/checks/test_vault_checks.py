from dataclasses import replace

import pytest

from fakes import GOVERNANCE, MANAGEMENT, STRAT_1, STRAT_2, VAULT_A, VAULT_B
from vault_watch.checks.vault_checks import vault_checks
from vault_watch.domain import Strategy, StrategyParams, Vault
from vault_watch.errors import VaultStructureError


def _vault(**overrides) -> Vault:
    values = dict(
        address=VAULT_A.lower(),
        api_version="0.4.3",
        symbol="yvDAI",
        name="DAI yVault",
        token={},
        icon=None,
        emergency_shutdown=False,
        tvl_total_assets=0,
        management=MANAGEMENT,
        governance=GOVERNANCE,
        deposit_limit=10**24,
    )
    values.update(overrides)
    return Vault(**values)


def _strategy(address: str, vault: str = VAULT_A, **overrides) -> Strategy:
    return Strategy(address=address, vault=vault, **overrides)


def test_valid_vault_is_checksummed():
    checked = vault_checks(_vault())

    assert checked.address == VAULT_A
    assert checked.config_ok is True
    assert checked.config_warnings == ()


def test_invalid_address_raises():
    with pytest.raises(VaultStructureError, match="invalid vault address"):
        vault_checks(_vault(address="not-an-address"))


def test_self_referencing_strategy_raises():
    vault = _vault(strategies=(_strategy(VAULT_A),))

    with pytest.raises(VaultStructureError, match="itself"):
        vault_checks(vault)


def test_duplicate_strategy_raises():
    vault = _vault(strategies=(_strategy(STRAT_1), _strategy(STRAT_1.lower())))

    with pytest.raises(VaultStructureError, match="duplicate"):
        vault_checks(vault)


def test_foreign_reported_vault_is_a_warning():
    vault = _vault(
        strategies=(
            _strategy(STRAT_1, reported_vault=VAULT_B, queue_index=0),
            _strategy(STRAT_2, reported_vault=VAULT_A.lower(), queue_index=1),
        )
    )

    checked = vault_checks(vault)

    assert [s.address for s in checked.strategies] == [STRAT_1, STRAT_2]
    assert checked.config_ok is False
    assert checked.config_warnings == (f"strategy {STRAT_1} reports vault {VAULT_B}",)


def test_unread_reported_vault_is_not_a_warning():
    checked = vault_checks(_vault(strategies=(_strategy(STRAT_1, queue_index=0),)))

    assert checked.config_ok is True


def test_config_warnings_do_not_raise():
    vault = _vault(
        management_fee=20_000,
        governance="0x0000000000000000000000000000000000000000",
        deposit_limit=0,
        debt_usage=12_000,
        strategies=(
            _strategy(STRAT_1, params=StrategyParams(debt_ratio=7_000), queue_index=0),
            _strategy(STRAT_2, params=StrategyParams(debt_ratio=5_000), emergency_exit=True),
        ),
    )

    checked = vault_checks(vault)

    assert checked.config_ok is False
    text = " | ".join(checked.config_warnings)
    assert "debt ratios sum to 12000" in text
    assert "management fee" in text
    assert "governance is not set" in text
    assert "deposit limit is zero" in text
    assert "not in the withdrawal queue" in text
    assert "emergency exit" in text


def test_defaulted_fields_do_not_raise_config_warnings():
    vault = _vault(
        management="",
        governance="",
        deposit_limit=0,
        defaulted_fields=("management", "governance", "depositLimit"),
    )

    assert vault_checks(vault).config_ok is True


def test_shutdown_vault_may_have_zero_deposit_limit():
    vault = replace(_vault(), emergency_shutdown=True, deposit_limit=0)

    assert vault_checks(vault).config_ok is True
