"""Per-field content predicates over normalized cell strings."""

from __future__ import annotations

import re
from collections.abc import Callable

_YEAR_RE = re.compile(r"^\d{4}$")
_VIN_RE = re.compile(r"^[A-Za-z0-9]{16,}$")
_MAKE_RE = re.compile(r"^[A-Za-z]{2,}$")
_CURRENCY_RE = re.compile(r"^\$?[\d,]+(\.\d+)?$")
_DIGITS_RE = re.compile(r"^\d+$")
_CURRENCY_MARKS = ("$", ",", ".")

YEAR_MIN = 1900
YEAR_MAX = 2100


def is_year(s: str) -> bool:
    """Four digits between 1900 and 2100 inclusive."""
    return bool(_YEAR_RE.match(s)) and YEAR_MIN <= int(s) <= YEAR_MAX


def is_vin(s: str) -> bool:
    """16+ alphanumeric characters, no spaces or punctuation."""
    return bool(_VIN_RE.match(s))


def is_make(s: str) -> bool:
    """Letters only, at least two (FORD, Volvo, ...)."""
    return bool(_MAKE_RE.match(s))


def is_cost(s: str) -> bool:
    """Currency-looking text, or a bare digit string longer than four.

    The currency form needs a ``$``, a comma or a decimal fraction, so a
    short plain number such as ``"200"`` (or a model year) is not a cost.
    """
    if _CURRENCY_RE.match(s) and any(mark in s for mark in _CURRENCY_MARKS):
        return any(ch.isdigit() for ch in s)
    return bool(_DIGITS_RE.match(s)) and len(s) > 4


FIELD_MATCHERS: dict[str, Callable[[str], bool]] = {
    "year": is_year,
    "make": is_make,
    "vin": is_vin,
    "cost": is_cost,
}
