"""Normalization pipeline — pure functions, no side effects."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from enum import Enum
from typing import Any

from fleet_normalizer import FIELDS
from fleet_normalizer.cells import is_blank_row
from fleet_normalizer.classify import classify_row, extract_record
from fleet_normalizer.detect import locate_header, resolve_from_content, resolve_from_header
from fleet_normalizer.models import (
    ColumnAssignment,
    DetectionSettings,
    ErrorKind,
    NormalizeFailure,
    NormalizeResult,
    OutputGrid,
    QCReport,
)
from fleet_normalizer.schema import OutputLayout, get_layout

logger = logging.getLogger(__name__)


class ResolutionStrategy(str, Enum):
    """How columns are resolved once the header search has run.

    ``auto``     header text when a header exists, cell contents otherwise.
    ``header``   header text only; a header row is required.
    ``content``  cell contents of the rows below a required header row.
    """

    auto = "auto"
    header = "header"
    content = "content"


# (source row index, row)
DataRegion = list[tuple[int, Sequence[Any]]]


def _fail(qc: QCReport, kind: ErrorKind, field_name: str | None = None) -> NormalizeResult:
    failure = NormalizeFailure.of(kind, field_name)
    qc.rows_out = 0
    qc.dropped_rows = qc.rows_in
    qc.warnings.append(failure.message)
    logger.info("Normalization failed: %s", failure.message)
    return NormalizeResult(qc=qc, error=failure)


def _warn_shared_columns(qc: QCReport, columns: ColumnAssignment) -> None:
    by_index: dict[int, list[str]] = {}
    for name in FIELDS:
        idx = columns.get(name)
        if idx is not None:
            by_index.setdefault(idx, []).append(name)
    letters = columns.letters()
    for names in by_index.values():
        if len(names) > 1:
            qc.warnings.append(
                f"Fields {', '.join(names)} resolved to the same column "
                f"({letters[names[0]]})"
            )


# ── Main normalization function ─────────────────────────────────


def normalize_grid(
    grid: Sequence[Sequence[Any]],
    *,
    strategy: ResolutionStrategy | str = ResolutionStrategy.auto,
    layout: OutputLayout | str = OutputLayout.schedule,
    settings: DetectionSettings | None = None,
) -> NormalizeResult:
    """Normalize a raw vehicle grid into the fixed output layout.

    Never raises for bad input data: every failure comes back as a
    :class:`NormalizeResult` carrying a :class:`NormalizeFailure`, and no
    partial grid is produced.
    """
    strategy = ResolutionStrategy(strategy)
    layout_spec = get_layout(layout)
    settings = settings or DetectionSettings()
    qc = QCReport(strategy=strategy.value)

    # 1. Read
    if len(grid) == 0:
        return _fail(qc, ErrorKind.EMPTY_GRID)

    # 2. Locate header
    header_idx = locate_header(grid)
    qc.header_row = header_idx
    data: DataRegion
    if header_idx is None:
        if strategy is not ResolutionStrategy.auto:
            return _fail(qc, ErrorKind.HEADER_NOT_FOUND)
        data = [(idx, row) for idx, row in enumerate(grid) if not is_blank_row(row)]
        qc.rows_in = len(data)
        if not data:
            return _fail(qc, ErrorKind.NO_VALID_ROWS)
        qc.warnings.append("No header row found; columns detected from cell contents")
    else:
        data = [(idx, grid[idx]) for idx in range(header_idx + 1, len(grid))]
        qc.rows_in = len(data)
        if not data:
            return _fail(qc, ErrorKind.NO_DATA_AFTER_HEADER)

    # 3. Resolve columns
    rows = [row for _idx, row in data]
    if header_idx is not None and strategy is not ResolutionStrategy.content:
        columns = resolve_from_header(grid[header_idx])
    else:
        columns = resolve_from_content(rows, settings)
    qc.columns = columns.letters()
    missing = columns.missing()
    if missing:
        return _fail(qc, ErrorKind.COLUMN_NOT_FOUND, missing[0])
    logger.info("Resolved columns (%s): %s", strategy.value, qc.columns)
    _warn_shared_columns(qc, columns)

    # 4. Classify rows, original order
    out = OutputGrid(header=layout_spec.headers, positions=dict(layout_spec.positions))
    skipped: Counter[str] = Counter()
    for source_idx, row in data:
        reason = classify_row(row, columns)
        if reason is not None:
            skipped[reason.value] += 1
            logger.debug("Skipping row %d: %s", source_idx + 1, reason.value)
            continue
        out.records.append(extract_record(row, columns))

    qc.skipped = dict(skipped)
    qc.rows_out = out.row_count
    qc.dropped_rows = qc.rows_in - qc.rows_out

    # 5. Emit
    if out.row_count == 0:
        return _fail(qc, ErrorKind.NO_VALID_ROWS)

    if qc.dropped_rows:
        qc.warnings.append(f"Skipped {qc.dropped_rows} non-data rows")
    logger.info("Accepted %d of %d rows (extent %s)", qc.rows_out, qc.rows_in, out.extent)
    return NormalizeResult(qc=qc, grid=out)
