"""Excel writer — produces the Processed_*.xlsx workbook."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from fleet_normalizer import FIELDS
from fleet_normalizer.models import OutputGrid, QCReport

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")

TEXT_FMT = "@"

DATA_SHEET = "Standardized"
NOTES_SHEET = "Notes"

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 30)


def _excel_value(val: str) -> Any:
    if val == "":
        return None
    if val.startswith("'"):
        return val
    stripped = val.lstrip()
    if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
        return f"'{val}"
    return val


def _write_grid(wb: Workbook, grid: OutputGrid) -> Worksheet:
    ws = wb.create_sheet(title=DATA_SHEET)
    for c_idx, label in enumerate(grid.header, 1):
        ws.cell(row=1, column=c_idx, value=label)

    # Only the fixed target columns carry data; the rest stay empty.
    targets = sorted(grid.positions[name] + 1 for name in FIELDS)
    for r_idx, row_vals in enumerate(grid.rows()[1:], 2):
        for c_idx in targets:
            cell = ws.cell(row=r_idx, column=c_idx, value=_excel_value(row_vals[c_idx - 1]))
            cell.number_format = TEXT_FMT

    _style_header(ws, grid.width)
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = grid.extent
    _auto_width(ws)
    return ws


def _fill_row(ws: Worksheet, row: int) -> None:
    for c in range(1, 5):
        ws.cell(row=row, column=c).fill = NOTE_FILL


def _write_notes(wb: Workbook, grid: OutputGrid, qc: QCReport) -> None:
    ws = wb.create_sheet(title=NOTES_SHEET)

    ws.cell(row=1, column=1, value="fleet-normalizer — Notes").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")

    row = 4
    ws.cell(row=row, column=1, value=f"Rows in: {qc.rows_in}")
    ws.cell(row=row, column=2, value=f"Rows out: {qc.rows_out}")
    ws.cell(row=row, column=3, value=f"Skipped: {qc.dropped_rows}")
    ws.cell(row=row, column=4, value=f"Range: {grid.extent}")
    _fill_row(ws, row)
    row += 1

    header_text = "none" if qc.header_row is None else f"row {qc.header_row + 1}"
    ws.cell(row=row, column=1, value=f"Header: {header_text}").font = LABEL_FONT
    ws.cell(row=row, column=2, value=f"Strategy: {qc.strategy}")
    _fill_row(ws, row)
    row += 1

    for name in FIELDS:
        ws.cell(row=row, column=1, value=name.upper() if name == "vin" else name.title())
        ws.cell(row=row, column=2, value=qc.columns.get(name, "?")).font = VALUE_FONT
        _fill_row(ws, row)
        row += 1

    for reason, count in sorted(qc.skipped.items()):
        ws.cell(row=row, column=1, value=f"Skipped ({reason})")
        ws.cell(row=row, column=2, value=count).font = VALUE_FONT
        _fill_row(ws, row)
        row += 1

    for warn in qc.warnings:
        ws.cell(row=row, column=1, value=f"⚠ {warn}").font = WARN_FONT
        _fill_row(ws, row)
        row += 1

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 22
    ws.column_dimensions["C"].width = 18
    ws.column_dimensions["D"].width = 18


# ── Public API ───────────────────────────────────────────────────


def output_name(input_path: Path) -> str:
    """``Processed_<stem>.xlsx`` for an uploaded file name."""
    return f"Processed_{Path(input_path).stem}.xlsx"


def write_workbook(path: Path, grid: OutputGrid, qc: QCReport | None = None) -> Path:
    """Write the normalized grid (plus a Notes sheet when *qc* is given)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_grid(wb, grid)
    if qc is not None:
        _write_notes(wb, grid, qc)

    tmp_path = path.with_name(path.stem + ".tmp.xlsx")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
