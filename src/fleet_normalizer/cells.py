"""Cell normalisation — raw spreadsheet values to canonical strings."""

from __future__ import annotations

import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from numbers import Number, Real

import pandas as pd


class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


def _is_missing(value: object) -> bool:
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def cell_kind(value: object) -> CellKind:
    """Tag a raw cell value as text, number, or empty."""
    if _is_missing(value):
        return CellKind.EMPTY
    if isinstance(value, bool):
        return CellKind.TEXT
    if isinstance(value, Number):
        return CellKind.NUMBER
    if isinstance(value, str) and not value.strip():
        return CellKind.EMPTY
    return CellKind.TEXT


def _plain_number(value: Number) -> Number:
    item = getattr(value, "item", None)
    if callable(item):
        # numpy scalars
        return item()
    return value


def whole_number(value: object) -> int | None:
    """Integer part of a finite numeric cell, truncated toward zero.

    Returns ``None`` for text, blanks, booleans and non-finite numbers.
    """
    if cell_kind(value) is not CellKind.NUMBER:
        return None
    plain = _plain_number(value)  # type: ignore[arg-type]
    if isinstance(plain, Decimal):
        if not plain.is_finite():
            return None
    elif not isinstance(plain, Real) or not math.isfinite(plain):
        return None
    return int(plain)


def _format_number(value: Number) -> str:
    plain = _plain_number(value)
    whole = whole_number(plain)
    if whole is not None and plain == whole:
        return str(whole)
    return str(plain)


def normalize_cell(value: object) -> str:
    """Return the trimmed string view of *value* used for pattern tests.

    Blank and missing values become ``""``; integral numbers drop their
    fraction so ``2005.0`` and ``Decimal("2005.0")`` read as ``"2005"``.
    """
    kind = cell_kind(value)
    if kind is CellKind.EMPTY:
        return ""
    if kind is CellKind.NUMBER:
        return _format_number(value)  # type: ignore[arg-type]
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value).strip()


def cell_at(row: object, index: int) -> str:
    """Normalized value of ``row[index]``; short rows read as blank."""
    try:
        return normalize_cell(row[index])  # type: ignore[index]
    except IndexError:
        return ""


def is_blank_row(row: object) -> bool:
    """True when every cell of *row* normalizes to ``""``."""
    return all(normalize_cell(value) == "" for value in row)  # type: ignore[attr-defined]
