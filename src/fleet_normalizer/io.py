"""I/O helpers — load input files as raw grids, write JSON artifacts."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime
from io import StringIO
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd

from fleet_normalizer.cells import is_blank_row

DEFAULT_MAX_ROWS = 100_000
DEFAULT_MAX_COLS = 500
DEFAULT_MAX_CELL_CHARS = 10_000

_EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")

# ── Loading ──────────────────────────────────────────────────────


def _frame_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    """Turn a header-less frame into rows of raw values, blanks as ``""``."""
    grid: list[list[Any]] = []
    for values in df.itertuples(index=False, name=None):
        row = ["" if pd.isna(v) else v for v in values]
        # trailing blanks come from pandas padding every row to one width
        while row and row[-1] == "":
            row.pop()
        if not is_blank_row(row):
            grid.append(row)
    return grid


def _read_csv(path: Path, delimiter: str) -> pd.DataFrame:
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            text = path.read_text(encoding=encoding)
        except UnicodeDecodeError as exc:
            last_exc = exc
            continue
        if not text.strip():
            return pd.DataFrame()
        # Upper bound on field count; quoted delimiters only over-count, and
        # the surplus columns are trimmed as trailing blanks.
        width = max(line.count(delimiter) + 1 for line in text.splitlines())
        try:
            return pd.read_csv(
                StringIO(text),
                header=None,
                names=list(range(width)),
                dtype="string",
                sep=delimiter,
                engine="c" if len(delimiter) == 1 else "python",
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.ParserError as exc:
            last_exc = exc
            break
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def _read_frame(path: Path, *, sheet: str | int, delimiter: str) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _read_csv(path, delimiter)

    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    if suffix in _EXCEL_SUFFIXES:
        return read_excel(path, sheet_name=sheet, header=None, engine="openpyxl", dtype=object)

    if suffix == ".xls":
        try:
            return read_excel(path, sheet_name=sheet, header=None, engine="xlrd", dtype=object)
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc

    raise ValueError(f"Unsupported file type: {suffix!r}. Use .csv, .xlsx, or .xls")


def load_grid(
    path: Path, sheet: str | int = 0, delimiter: str = ","
) -> list[list[Any]]:
    """Load a CSV or Excel sheet as a raw 2-D grid (no header assumed).

    Fully blank rows are dropped; ragged rows are kept ragged.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the extension is not supported, the sheet is missing, or CSV
        decoding/parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    try:
        df = _read_frame(path, sheet=sheet, delimiter=delimiter)
    except (KeyError, IndexError) as exc:
        raise ValueError(f"Worksheet {sheet!r} not found in {path.name}") from exc
    return _frame_to_grid(df)


def check_grid_bounds(
    grid: Sequence[Sequence[Any]],
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_cols: int = DEFAULT_MAX_COLS,
    max_cell_chars: int = DEFAULT_MAX_CELL_CHARS,
) -> None:
    """Reject pathological grids before they reach the normalizer.

    Raises ``ValueError`` naming the first limit exceeded.
    """
    if len(grid) > max_rows:
        raise ValueError(f"Input has {len(grid)} rows; the limit is {max_rows}")
    for r_idx, row in enumerate(grid, 1):
        if len(row) > max_cols:
            raise ValueError(f"Row {r_idx} has {len(row)} columns; the limit is {max_cols}")
        for value in row:
            if isinstance(value, str) and len(value) > max_cell_chars:
                raise ValueError(
                    f"Row {r_idx} has a cell longer than {max_cell_chars} characters"
                )


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
