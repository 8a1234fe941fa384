from __future__ import annotations

import pytest

from fleet_normalizer.matchers import FIELD_MATCHERS, is_cost, is_make, is_vin, is_year


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1999", True),
        ("1900", True),
        ("2100", True),
        ("1850", False),
        ("2101", False),
        ("19999", False),
        ("99", False),
        ("199a", False),
        ("", False),
    ],
)
def test_is_year(value: str, expected: bool) -> None:
    assert is_year(value) is expected


def test_is_vin() -> None:
    assert is_vin("1HGCM82633A123456")
    assert is_vin("1234567890123456")  # 16 is enough
    assert not is_vin("ABC123")
    assert not is_vin("1HGCM826 33A123456")
    assert not is_vin("1HGCM-82633A123456")


def test_is_make() -> None:
    assert is_make("FORD")
    assert is_make("Volvo")
    assert not is_make("F")
    assert not is_make("Mercedes Benz")
    assert not is_make("F150")


def test_is_cost_currency_and_long_digits() -> None:
    assert is_cost("$20,000.00")
    assert is_cost("20000")
    assert is_cost("1,000")
    assert is_cost("$950")
    assert is_cost("950.50")


def test_is_cost_rejects_short_plain_numbers_and_text() -> None:
    assert not is_cost("200")
    assert not is_cost("2005")
    assert not is_cost("N/A")
    assert not is_cost("$")
    assert not is_cost("1HGCM82633A123456")


def test_predicates_are_independent() -> None:
    hits = {name for name, matcher in FIELD_MATCHERS.items() if matcher("12345678901234567")}
    assert hits == {"vin", "cost"}
    assert list(FIELD_MATCHERS) == ["year", "make", "vin", "cost"]
