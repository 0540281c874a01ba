from decimal import Decimal

import pytest

from services.errors import ValidationError
from services.money import (
    amount_in_words, apply_bp, bp_to_percent, div_half_up, percent_to_bp, to_major, to_minor,
)
from services.months import month_range, parse_month, parse_month_list


def test_div_half_up():
    assert div_half_up(5, 2) == 3
    assert div_half_up(4, 3) == 1
    assert div_half_up(-5, 2) == -3


def test_apply_bp_scenario_d():
    assert apply_bp(900000, 3000) == 270000


def test_minor_major_conversion():
    assert to_minor("4500.50") == 450050
    assert to_minor(Decimal("0.005")) == 1
    assert to_minor(500000) == 50000000
    assert to_major(450050) == Decimal("4500.50")


def test_invalid_amount():
    with pytest.raises(ValidationError):
        to_minor("abc")


def test_percent_bounds():
    assert percent_to_bp("12.5") == 1250
    assert bp_to_percent(1250) == Decimal("12.50")
    with pytest.raises(ValidationError):
        percent_to_bp(101)
    with pytest.raises(ValidationError):
        percent_to_bp(-1)


def test_amount_in_words():
    assert amount_in_words(125000) == "One Thousand Two Hundred Fifty Only"
    assert amount_in_words(2000000005) == "Twenty Million and 05/100 Only"


def test_month_parsing():
    assert parse_month(" 2026-03 ") == "2026-03"
    for bad in ("2026-13", "2026-3", "March", ""):
        with pytest.raises(ValidationError):
            parse_month(bad)


def test_month_list_must_be_sorted_and_unique():
    assert parse_month_list(["2026-03", "2026-04"]) == ["2026-03", "2026-04"]
    with pytest.raises(ValidationError):
        parse_month_list([])
    with pytest.raises(ValidationError):
        parse_month_list(["2026-04", "2026-03"])
    with pytest.raises(ValidationError):
        parse_month_list(["2026-03", "2026-03"])


def test_month_range_crosses_year():
    assert month_range("2025-11", "2026-02") == ["2025-11", "2025-12", "2026-01", "2026-02"]
