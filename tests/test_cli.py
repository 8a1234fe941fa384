"""CLI integration tests for fleet-normalizer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

import fleet_normalizer.cli as cli_mod
from fleet_normalizer import __version__
from fleet_normalizer.cli import app
from fleet_normalizer.report import DATA_SHEET

runner = CliRunner()

VIN_A = "1FTFW1ET5DFC10312"
VIN_B = "4V4NC9EH5AN123456"

FLEET_CSV = (
    "Acme Trucking - Vehicle Schedule\n"
    "VIN,Year,Make,Cost New\n"
    f'{VIN_A},2005,FORD,"$1,000"\n'
    ",,,\n"
    f'{VIN_B},2010,VOLVO,"$25,000.00"\n'
    'TOTAL,,,"$26,000"\n'
)


def _write_csv(tmp_path: Path, name: str, rows: str) -> Path:
    path = tmp_path / name
    path.write_text(rows)
    return path


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text())


def test_run_success_writes_workbook_qc_and_manifest(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["run", "--input", str(csv_path), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 0, result.output
    out_path = out_dir / "Processed_fleet.xlsx"
    assert out_path.exists()

    ws = load_workbook(out_path)[DATA_SHEET]
    assert ws["E1"].value == "Year"
    assert (ws["E2"].value, ws["F2"].value, ws["J2"].value, ws["V2"].value) == (
        "2005",
        "FORD",
        VIN_A,
        "1000",
    )
    assert (ws["E3"].value, ws["J3"].value, ws["V3"].value) == ("2010", VIN_B, "25000")
    assert ws.auto_filter.ref == "A1:AN3"

    qc = _read_json(out_dir / "qc_report.json")
    assert qc["error"] is None
    assert qc["header_row"] == 1
    assert qc["rows_in"] == 3
    assert qc["rows_out"] == 2
    assert qc["skipped"] == {"total_line": 1}
    assert qc["columns"] == {"year": "B", "make": "C", "vin": "A", "cost": "D"}

    manifest = _read_json(out_dir / "run_manifest.json")
    assert manifest["status"] == "success"
    assert manifest["tool"] == "fleet-normalizer"
    assert manifest["rows_out"] == 2
    assert manifest["output_path"] == str(out_path.resolve())
    assert len(manifest["sha256"]) == 64


def test_run_compact_layout(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "-i", str(csv_path), "-o", str(out_dir), "--layout", "compact", "-q"],
    )

    assert result.exit_code == 0, result.output
    ws = load_workbook(out_dir / "Processed_fleet.xlsx")[DATA_SHEET]
    assert ws.max_column == 4
    assert [c.value for c in ws[2]] == ["2005", "FORD", VIN_A, "1000"]
    assert ws.auto_filter.ref == "A1:D3"


def test_run_accepts_its_own_output(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    first_out = tmp_path / "first"
    second_out = tmp_path / "second"

    first = runner.invoke(app, ["run", "-i", str(csv_path), "-o", str(first_out), "-q"])
    assert first.exit_code == 0, first.output

    second = runner.invoke(
        app,
        ["run", "-i", str(first_out / "Processed_fleet.xlsx"), "-o", str(second_out), "-q"],
    )

    assert second.exit_code == 0, second.output
    ws = load_workbook(second_out / "Processed_Processed_fleet.xlsx")[DATA_SHEET]
    assert (ws["E2"].value, ws["F2"].value, ws["J2"].value, ws["V2"].value) == (
        "2005",
        "FORD",
        VIN_A,
        "1000",
    )
    qc = _read_json(second_out / "qc_report.json")
    assert qc["rows_out"] == 2
    assert qc["columns"] == {"year": "E", "make": "F", "vin": "J", "cost": "V"}


def test_run_content_strategy_failure_writes_no_workbook(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        "fleet.csv",
        f"Year,Make,VIN,Cost\n2005,FORD,{VIN_A},n/a\n2010,VOLVO,{VIN_B},tbd\n",
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "-i", str(csv_path), "-o", str(out_dir), "--strategy", "content", "-q"],
    )

    assert result.exit_code == 2
    assert not (out_dir / "Processed_fleet.xlsx").exists()
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["error"]["kind"] == "column_not_found"
    assert qc["error"]["field"] == "cost"
    assert qc["rows_out"] == 0
    manifest = _read_json(out_dir / "run_manifest.json")
    assert manifest["status"] == "failed"
    assert manifest["error_code"] == 2
    assert manifest["error_message"] == "Cannot reliably find the Cost column."


def test_run_header_strategy_requires_header(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        "noheader.csv",
        f'2005,FORD,{VIN_A},"$1,000"\n2010,VOLVO,{VIN_B},"$2,000"\n',
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "-i", str(csv_path), "-o", str(out_dir), "--strategy", "header", "-q"],
    )

    assert result.exit_code == 2
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["error"]["kind"] == "header_not_found"
    assert qc["header_row"] is None


def test_run_headerless_input_falls_back_to_content(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        "noheader.csv",
        f'2005,FORD,{VIN_A},"$1,000"\n2010,VOLVO,{VIN_B},"$2,000"\n',
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["run", "-i", str(csv_path), "-o", str(out_dir), "-q"])

    assert result.exit_code == 0, result.output
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["rows_out"] == 2
    assert "No header row found; columns detected from cell contents" in qc["warnings"]


def test_run_unsupported_suffix_writes_failed_manifest(tmp_path: Path) -> None:
    txt_path = _write_csv(tmp_path, "fleet.txt", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["run", "-i", str(txt_path), "-o", str(out_dir), "-q"])

    assert result.exit_code == 2
    manifest = _read_json(out_dir / "run_manifest.json")
    assert manifest["status"] == "failed"
    assert "Unsupported file type" in manifest["error_message"]
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["rows_in"] == 0
    assert qc["error"]["kind"] == "input_error"
    assert qc["error"]["field"] is None
    assert qc["error"]["message"] == manifest["error_message"]


def test_run_rejects_inputs_over_row_limit(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["run", "-i", str(csv_path), "-o", str(out_dir), "--max-rows", "1", "-q"]
    )

    assert result.exit_code == 2
    manifest = _read_json(out_dir / "run_manifest.json")
    assert "limit is 1" in manifest["error_message"]
    assert _read_json(out_dir / "qc_report.json")["error"]["kind"] == "input_error"


def test_run_unexpected_error_exits_one(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    def _boom(*_args: object, **_kwargs: object) -> Path:
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(cli_mod, "write_workbook", _boom)

    result = runner.invoke(app, ["run", "-i", str(csv_path), "-o", str(out_dir), "-q"])

    assert result.exit_code == 1
    manifest = _read_json(out_dir / "run_manifest.json")
    assert manifest["error_code"] == 1
    assert manifest["error_message"] == "Unexpected internal error: disk on fire"
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["error"] == {
        "kind": "internal_error",
        "field": None,
        "message": "Unexpected internal error: disk on fire",
    }


def test_run_nonquiet_shows_progress_panels(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["run", "-i", str(csv_path), "-o", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert "Pipeline Start" in result.stdout
    assert "Pipeline Complete" in result.stdout
    assert "Skipped 1 non-data rows" in result.stdout


def test_validate_pass_writes_artifacts_only(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", FLEET_CSV)
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["validate", "-i", str(csv_path), "-o", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert "Validation Summary" in result.stdout
    assert "PASS" in result.stdout
    assert (out_dir / "qc_report.json").exists()
    assert not (out_dir / "Processed_fleet.xlsx").exists()
    manifest = _read_json(out_dir / "run_manifest.json")
    assert manifest["status"] == "success"
    assert manifest["output_path"] == ""


def test_validate_failure_exits_two(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, "fleet.csv", "Year,Make,VIN,Cost\n")
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["validate", "-i", str(csv_path), "-o", str(out_dir)])

    assert result.exit_code == 2
    assert "FAIL" in result.stdout
    qc = _read_json(out_dir / "qc_report.json")
    assert qc["error"]["kind"] == "no_data_after_header"
    assert _read_json(out_dir / "run_manifest.json")["status"] == "failed"


def test_version_flag_prints_and_exits() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"fleet-normalizer v{__version__}" in result.stdout
