"""CLI entry point for fleet-normalizer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from fleet_normalizer import FIELDS, __version__
from fleet_normalizer.io import (
    DEFAULT_MAX_CELL_CHARS,
    DEFAULT_MAX_COLS,
    DEFAULT_MAX_ROWS,
    check_grid_bounds,
    load_grid,
    write_json,
)
from fleet_normalizer.models import DetectionSettings, NormalizeResult, QCReport, RunManifest
from fleet_normalizer.pipeline import ResolutionStrategy, normalize_grid
from fleet_normalizer.qc import INPUT_ERROR, INTERNAL_ERROR, run_error, write_qc_report
from fleet_normalizer.report import output_name, write_workbook
from fleet_normalizer.schema import OutputLayout
from fleet_normalizer.utils import make_run_id, sha256_file, utcnow_iso

app = typer.Typer(
    name="fnorm",
    help="fleet-normalizer — Turn messy vehicle schedules into a fixed-layout workbook.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fleet-normalizer v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def _sheet_arg(sheet: str | None) -> str | int:
    if sheet is None:
        return 0
    return int(sheet) if sheet.isdigit() else sheet


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    qc: QCReport,
    *,
    output_path: Path | None = None,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        pass

    manifest = RunManifest(
        run_id=run_id,
        version=__version__,
        input_path=str(input_file.resolve()),
        output_dir=str(out_dir.resolve()),
        output_path=str(output_path.resolve()) if output_path else "",
        created_at_utc=created_at,
        rows_in=qc.rows_in,
        rows_out=qc.rows_out,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _write_failure_artifacts(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    *,
    message: str,
    rows_in: int = 0,
    error_code: int = 2,
) -> tuple[Path, Path]:
    qc = QCReport(rows_in=rows_in, rows_out=0, dropped_rows=rows_in, warnings=[message])
    kind = INTERNAL_ERROR if error_code == 1 else INPUT_ERROR
    qc_path = write_qc_report(out_dir, qc, run_error(kind, message))
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        run_id,
        created_at,
        qc,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    return qc_path, manifest_path


def _fail_and_exit(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    *,
    message: str,
    rows_in: int = 0,
    error_code: int = 2,
) -> NoReturn:
    qc_path, manifest_path = _write_failure_artifacts(
        out_dir,
        input_file,
        run_id,
        created_at,
        message=message,
        rows_in=rows_in,
        error_code=error_code,
    )
    _err(message)
    console.print(f"  QC report -> {qc_path}")
    console.print(f"  Manifest  -> {manifest_path}")
    raise typer.Exit(code=error_code)


def _load_checked(
    input_file: Path,
    *,
    sheet: str | None,
    delimiter: str,
    max_rows: int,
    max_cols: int,
) -> list[list[Any]]:
    grid = load_grid(input_file, sheet=_sheet_arg(sheet), delimiter=delimiter)
    check_grid_bounds(
        grid, max_rows=max_rows, max_cols=max_cols, max_cell_chars=DEFAULT_MAX_CELL_CHARS
    )
    return grid


def _normalize(
    grid: list[list[Any]],
    *,
    strategy: ResolutionStrategy,
    layout: OutputLayout,
    sample_size: int,
) -> NormalizeResult:
    return normalize_grid(
        grid,
        strategy=strategy,
        layout=layout,
        settings=DetectionSettings(sample_size=sample_size),
    )


def _columns_text(qc: QCReport) -> str:
    if not qc.columns:
        return "none"
    return ", ".join(f"{name}={qc.columns[name]}" for name in FIELDS if name in qc.columns)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """fleet-normalizer CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to CSV or Excel vehicle schedule.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for workbook + QC + manifest.",
    ),
    sheet: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Worksheet name or 0-based index (Excel inputs; default first sheet).",
    ),
    delimiter: str = typer.Option(
        ",", "--delimiter", "-d",
        help="Field delimiter for CSV inputs.",
    ),
    strategy: ResolutionStrategy = typer.Option(
        ResolutionStrategy.auto, "--strategy",
        help="Column resolution: auto, header (header text), or content (cell patterns).",
    ),
    layout: OutputLayout = typer.Option(
        OutputLayout.schedule, "--layout",
        help="Output layout: schedule (fixed 40 columns) or compact (Year/Make/VIN/Cost).",
    ),
    sample_size: int = typer.Option(
        DetectionSettings().sample_size, "--sample-size", min=1,
        help="Rows sampled when detecting columns from cell contents.",
    ),
    max_rows: int = typer.Option(
        DEFAULT_MAX_ROWS, "--max-rows", min=1,
        help="Reject inputs with more rows than this.",
    ),
    max_cols: int = typer.Option(
        DEFAULT_MAX_COLS, "--max-cols", min=1,
        help="Reject inputs with wider rows than this.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show detection debug logging.",
    ),
) -> None:
    """Normalize a vehicle schedule into Processed_<name>.xlsx."""
    echo = _printer(quiet)
    _configure_logging(verbose)
    created_at = utcnow_iso()
    run_id = make_run_id()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]fleet-normalizer[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Pipeline Start", border_style="blue",
        ))
        console.print(f"  Strategy: {strategy.value}, layout: {layout.value}")

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading input file …")
    try:
        grid = _load_checked(
            input_file, sheet=sheet, delimiter=delimiter, max_rows=max_rows, max_cols=max_cols
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        _fail_and_exit(out_dir, input_file, run_id, created_at, message=str(exc))

    echo(f"  {len(grid)} non-blank rows")

    try:
        # ── Detect + classify ────────────────────────────────────
        echo("[blue]>[/blue] Detecting columns …")
        result = _normalize(grid, strategy=strategy, layout=layout, sample_size=sample_size)
        qc = result.qc

        qc_path = write_qc_report(out_dir, qc, result.error)
        echo(f"  QC report -> {qc_path}")

        if result.error is not None or result.grid is None:
            message = result.error.message if result.error else "No output produced"
            _err(message)
            _write_manifest(
                out_dir,
                input_file,
                run_id,
                created_at,
                qc,
                status="failed",
                error_code=2,
                error_message=message,
            )
            raise typer.Exit(code=2)

        if not quiet:
            console.print(f"  Columns: {_columns_text(qc)}")
            for w in qc.warnings:
                console.print(f"  [yellow]![/yellow] {w}")
            console.print(f"  {qc.rows_out} vehicle rows retained")

        # ── Write workbook ───────────────────────────────────────
        out_path = out_dir / output_name(input_file)
        echo(f"[blue]>[/blue] Writing {out_path.name} …")
        report_path = write_workbook(out_path, result.grid, qc)
        echo(f"  Workbook -> {report_path}")

        # ── Manifest ─────────────────────────────────────────────
        manifest_path = _write_manifest(
            out_dir, input_file, run_id, created_at, qc, output_path=report_path
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {qc.rows_out} rows -> {report_path}",
                title="Pipeline Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        _fail_and_exit(
            out_dir,
            input_file,
            run_id,
            created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=len(grid),
            error_code=1,
        )


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to CSV or Excel vehicle schedule.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for QC + manifest.",
    ),
    sheet: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Worksheet name or 0-based index (Excel inputs; default first sheet).",
    ),
    delimiter: str = typer.Option(
        ",", "--delimiter", "-d",
        help="Field delimiter for CSV inputs.",
    ),
    strategy: ResolutionStrategy = typer.Option(
        ResolutionStrategy.auto, "--strategy",
        help="Column resolution: auto, header (header text), or content (cell patterns).",
    ),
    sample_size: int = typer.Option(
        DetectionSettings().sample_size, "--sample-size", min=1,
        help="Rows sampled when detecting columns from cell contents.",
    ),
    max_rows: int = typer.Option(
        DEFAULT_MAX_ROWS, "--max-rows", min=1,
        help="Reject inputs with more rows than this.",
    ),
    max_cols: int = typer.Option(
        DEFAULT_MAX_COLS, "--max-cols", min=1,
        help="Reject inputs with wider rows than this.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes QC + manifest.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show detection debug logging.",
    ),
) -> None:
    """Check column detection without writing the workbook.

    Writes qc_report.json + run_manifest.json only.
    Exit 0 = OK, exit 2 = the file cannot be normalized.
    """
    _configure_logging(verbose)
    created_at = utcnow_iso()
    run_id = make_run_id()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]fleet-normalizer[/bold] v{__version__}  [dim]validate mode[/dim]\n"
            f"Input: {input_file}",
            title="Validate", border_style="cyan",
        ))

    # ── Load ─────────────────────────────────────────────────────
    try:
        grid = _load_checked(
            input_file, sheet=sheet, delimiter=delimiter, max_rows=max_rows, max_cols=max_cols
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        _fail_and_exit(out_dir, input_file, run_id, created_at, message=str(exc))

    try:
        result = _normalize(
            grid, strategy=strategy, layout=OutputLayout.compact, sample_size=sample_size
        )
        qc = result.qc

        qc_path = write_qc_report(out_dir, qc, result.error)
        error_message = result.error.message if result.error else ""
        manifest_path = _write_manifest(
            out_dir,
            input_file,
            run_id,
            created_at,
            qc,
            status="success" if result.ok else "failed",
            error_code=None if result.ok else 2,
            error_message=error_message,
        )

        # ── Summary table ────────────────────────────────────────
        if not quiet:
            tbl = RichTable(title="Validation Summary", show_lines=True)
            tbl.add_column("Check", style="bold")
            tbl.add_column("Result")

            header_text = "none" if qc.header_row is None else f"row {qc.header_row + 1}"
            tbl.add_row("Header", header_text)
            tbl.add_row("Strategy", qc.strategy)
            tbl.add_row("Columns", _columns_text(qc))
            tbl.add_row("Rows in", str(qc.rows_in))
            tbl.add_row("Rows out", str(qc.rows_out))
            for reason, count in sorted(qc.skipped.items()):
                tbl.add_row(f"Skipped ({reason})", str(count))

            for w in qc.warnings:
                tbl.add_row("Warning", f"[yellow]{w}[/yellow]")

            tbl.add_row("Status", "[green]PASS[/green]" if result.ok else "[red]FAIL[/red]")
            console.print(tbl)
        console.print(f"  QC       -> {qc_path}")
        console.print(f"  Manifest -> {manifest_path}")

        if result.error is not None:
            _err(result.error.message)
            raise typer.Exit(code=2)
    except typer.Exit:
        raise
    except Exception as exc:
        _fail_and_exit(
            out_dir,
            input_file,
            run_id,
            created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=len(grid),
            error_code=1,
        )
