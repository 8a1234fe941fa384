"""Row classification — real vehicle rows vs. junk, and record extraction."""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum
from typing import Any

from fleet_normalizer.cells import cell_at, normalize_cell, whole_number
from fleet_normalizer.models import ColumnAssignment, OutputRecord

SECTION_LABEL_WORDS: tuple[str, ...] = ("tractor", "trailer")
TOTAL_WORD = "total"

_FRACTION_RE = re.compile(r"\.\d+$")
_NON_DIGIT_RE = re.compile(r"\D")


class SkipReason(str, Enum):
    blank = "blank"
    header_echo = "header_echo"
    section_label = "section_label"
    total_line = "total_line"


def _column(columns: ColumnAssignment, field_name: str) -> int:
    idx = columns.get(field_name)
    if idx is None:
        raise ValueError(f"Column for {field_name!r} is not resolved")
    return idx


def _cost_cell(row: Sequence[Any], index: int) -> str:
    try:
        raw = row[index]
    except IndexError:
        return ""
    # numeric cells are truncated as numbers, never via their float repr
    whole = whole_number(raw)
    return str(whole) if whole is not None else normalize_cell(raw)


def _field_values(row: Sequence[Any], columns: ColumnAssignment) -> tuple[str, str, str, str]:
    return (
        cell_at(row, _column(columns, "year")),
        cell_at(row, _column(columns, "make")),
        cell_at(row, _column(columns, "vin")),
        _cost_cell(row, _column(columns, "cost")),
    )


def classify_row(row: Sequence[Any], columns: ColumnAssignment) -> SkipReason | None:
    """Return why *row* should be skipped, or ``None`` for a real data row.

    Rules are checked in order and the first match wins: blank, repeated
    header, section label (Tractors / Trailers), totals line.
    """
    year, make, vin, cost = _field_values(row, columns)

    if not (year or make or vin or cost):
        return SkipReason.blank

    if year.lower() == "year" and make.lower() == "make" and vin.lower() == "vin":
        return SkipReason.header_echo

    make_lower = make.lower()
    if any(word in make_lower for word in SECTION_LABEL_WORDS):
        return SkipReason.section_label

    # Any cell, not just the resolved ones: "Total" often sits in a label column.
    if any(TOTAL_WORD in normalize_cell(value).lower() for value in row):
        return SkipReason.total_line

    return None


def clean_cost(value: str) -> str:
    """Whole-currency digits of *value*: ``"$20,000.00"`` -> ``"20000"``.

    Any trailing decimal fraction is dropped, not rounded.
    """
    return _NON_DIGIT_RE.sub("", _FRACTION_RE.sub("", value))


def extract_record(row: Sequence[Any], columns: ColumnAssignment) -> OutputRecord:
    year, make, vin, cost = _field_values(row, columns)
    return OutputRecord(year=year, make=make, vin=vin, cost=clean_cost(cost))
