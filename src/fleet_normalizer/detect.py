"""Column detection — header location, header-text and content-based resolvers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from fleet_normalizer import FIELDS
from fleet_normalizer.cells import normalize_cell
from fleet_normalizer.matchers import FIELD_MATCHERS
from fleet_normalizer.models import ColumnAssignment, ColumnScore, DetectionSettings

logger = logging.getLogger(__name__)

# Keyword order matters for cost: a "Cost" column wins over "Stated Value".
HEADER_KEYWORDS: dict[str, tuple[str, ...]] = {
    "year": ("year",),
    "make": ("make",),
    "vin": ("vin",),
    "cost": ("cost", "stated"),
}


# ── Header location ──────────────────────────────────────────────


def _lowered_text_cells(row: Sequence[Any]) -> list[str]:
    return [cell.lower() if isinstance(cell, str) else "" for cell in row]


def is_header_row(row: Sequence[Any]) -> bool:
    """True if the row's text cells mention every field keyword."""
    cells = _lowered_text_cells(row)
    return all(
        any(keyword in cell for cell in cells for keyword in keywords)
        for keywords in HEADER_KEYWORDS.values()
    )


def locate_header(grid: Sequence[Sequence[Any]]) -> int | None:
    """Return the index of the first header row in *grid*, or ``None``."""
    for idx, row in enumerate(grid):
        if is_header_row(row):
            logger.info("Header row found at index %d", idx)
            return idx
    logger.info("No header row found in %d rows", len(grid))
    return None


def resolve_from_header(header_row: Sequence[Any]) -> ColumnAssignment:
    """Map each field to the first header cell containing its keyword."""
    cells = _lowered_text_cells(header_row)
    assignment = ColumnAssignment()
    for name, keywords in HEADER_KEYWORDS.items():
        for keyword in keywords:
            idx = next((i for i, cell in enumerate(cells) if keyword in cell), None)
            if idx is not None:
                setattr(assignment, name, idx)
                break
    return assignment


# ── Content scoring ──────────────────────────────────────────────


def score_columns(
    sample: Sequence[Sequence[Any]],
    matchers: Mapping[str, Callable[[str], bool]] = FIELD_MATCHERS,
) -> list[ColumnScore]:
    """Count per-column predicate hits over *sample*.

    One :class:`ColumnScore` per column index up to the widest sample row.
    """
    width = max((len(row) for row in sample), default=0)
    scores = [ColumnScore() for _ in range(width)]
    for row in sample:
        for col, raw in enumerate(row):
            value = normalize_cell(raw)
            for name, matcher in matchers.items():
                if matcher(value):
                    scores[col].bump(name)
            scores[col].total += 1
    return scores


def best_column(scores: Sequence[ColumnScore], field_name: str) -> tuple[int | None, int]:
    """Return ``(index, count)`` of the highest-scoring column for a field.

    Ties go to the lowest index; a field with no hits gives ``(None, 0)``.
    """
    best_idx: int | None = None
    best_count = 0
    for idx, score in enumerate(scores):
        count = score.count(field_name)
        if count > best_count:
            best_idx, best_count = idx, count
    return best_idx, best_count


def pick_columns(
    scores: Sequence[ColumnScore], settings: DetectionSettings | None = None
) -> ColumnAssignment:
    """Choose a column per field, leaving fields under their threshold unset."""
    settings = settings or DetectionSettings()
    assignment = ColumnAssignment()
    for name in FIELDS:
        idx, count = best_column(scores, name)
        threshold = settings.min_matches(name)
        if count >= threshold:
            setattr(assignment, name, idx)
        else:
            logger.info(
                "Column for %s below threshold (%d hits, need %d)", name, count, threshold
            )
    return assignment


def resolve_from_content(
    rows: Sequence[Sequence[Any]], settings: DetectionSettings | None = None
) -> ColumnAssignment:
    """Score the first ``settings.sample_size`` rows and pick columns."""
    settings = settings or DetectionSettings()
    sample = rows[: settings.sample_size]
    return pick_columns(score_columns(sample), settings)
