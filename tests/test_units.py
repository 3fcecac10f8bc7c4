import pytest

from vault_watch.units import bps_share, parse_fixed_point, to_human_date_text


def test_parse_fixed_point_keeps_precision_above_64_bits():
    assert parse_fixed_point("123456789012345678901234567890") == 123456789012345678901234567890


def test_parse_fixed_point_truncates_fraction():
    assert parse_fixed_point("1000000000000000000.999") == 10**18
    assert parse_fixed_point("-1.5") == -1


def test_parse_fixed_point_accepts_scientific_notation():
    assert parse_fixed_point("1e18") == 10**18
    assert parse_fixed_point(1.5e3) == 1500


def test_parse_fixed_point_rejects_garbage():
    with pytest.raises(ValueError):
        parse_fixed_point("lots")
    with pytest.raises(ValueError):
        parse_fixed_point("NaN")
    with pytest.raises(ValueError):
        parse_fixed_point(True)


def test_bps_share():
    assert bps_share(600, 1000) == 6000
    assert bps_share(1, 3) == 3333
    assert bps_share(5, 0) == 0


def test_to_human_date_text():
    assert to_human_date_text(1_700_000_000) == "2023-11-14 22:13:20 UTC"
    assert to_human_date_text("1700000000") == "2023-11-14 22:13:20 UTC"
    assert to_human_date_text(0) == "never"
    assert to_human_date_text(None) == "never"
    assert to_human_date_text("soon") == "never"
