"""Tests for the normalized workbook writer."""

from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from fleet_normalizer.models import OutputGrid, OutputRecord, QCReport
from fleet_normalizer.report import DATA_SHEET, NOTES_SHEET, output_name, write_workbook
from fleet_normalizer.schema import SCHEDULE_HEADERS, get_layout


def _grid(layout: str = "schedule") -> OutputGrid:
    spec = get_layout(layout)
    return OutputGrid(
        header=spec.headers,
        positions=dict(spec.positions),
        records=[
            OutputRecord("2005", "FORD", "1FTFW1ET5DFC10312", "1000"),
            OutputRecord("2010", "=HYPERLINK(\"x\")", "4V4NC9EH5AN123456", "25000"),
        ],
    )


def test_write_workbook_places_fields_in_fixed_columns(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "Processed_fleet.xlsx", _grid())

    wb = load_workbook(path)
    assert wb.sheetnames == [DATA_SHEET]
    ws = wb[DATA_SHEET]
    assert [ws.cell(row=1, column=c).value for c in range(1, 41)] == list(SCHEDULE_HEADERS)
    assert ws["E2"].value == "2005"
    assert ws["F2"].value == "FORD"
    assert ws["J2"].value == "1FTFW1ET5DFC10312"
    assert ws["V2"].value == "1000"
    assert ws["A2"].value is None
    assert ws["V3"].value == "25000"
    assert ws.auto_filter.ref == "A1:AN3"
    assert ws.freeze_panes == "A2"
    assert ws.max_row == 3
    assert ws.max_column == 40
    assert ws["E1"].font.bold


def test_write_workbook_escapes_formula_like_text(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "out.xlsx", _grid("compact"))

    ws = load_workbook(path)[DATA_SHEET]
    assert ws["B3"].value == "'=HYPERLINK(\"x\")"
    assert ws.auto_filter.ref == "A1:D3"


def test_write_workbook_adds_notes_sheet_with_qc(tmp_path: Path) -> None:
    qc = QCReport(
        rows_in=4,
        rows_out=2,
        dropped_rows=2,
        skipped={"blank": 1, "total_line": 1},
        header_row=1,
        strategy="auto",
        columns={"year": "B", "make": "C", "vin": "A", "cost": "D"},
        warnings=["Skipped 2 non-data rows"],
    )

    path = write_workbook(tmp_path / "out.xlsx", _grid(), qc)

    wb = load_workbook(path)
    assert wb.sheetnames == [DATA_SHEET, NOTES_SHEET]
    values = [
        str(cell.value)
        for row in wb[NOTES_SHEET].iter_rows()
        for cell in row
        if cell.value is not None
    ]
    assert "Rows out: 2" in values
    assert "Header: row 2" in values
    assert "Range: A1:AN3" in values
    assert "Skipped (total_line)" in values
    assert any("Skipped 2 non-data rows" in v for v in values)
    assert not (tmp_path / "out.tmp.xlsx").exists()


def test_output_name_uses_input_stem() -> None:
    assert output_name(Path("/uploads/Fleet 2024.xls")) == "Processed_Fleet 2024.xlsx"
