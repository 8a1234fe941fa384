"""Data models / typed records used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any

from openpyxl.utils import get_column_letter

from fleet_normalizer import FIELDS

Grid = Sequence[Sequence[Any]]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_count_map(values: Mapping[str, Any] | None, field_name: str) -> dict[str, int]:
    if values is None:
        return {}
    return {
        str(key): _to_non_negative_int(count, f"{field_name}[{key}]")
        for key, count in values.items()
    }


# ── Detection ────────────────────────────────────────────────────


@dataclass(frozen=True)
class DetectionSettings:
    """Thresholds for content-based column detection.

    The defaults are the historical constants: score the first five data
    rows, and require two Year/Make hits but only one VIN/Cost hit.
    """

    sample_size: int = 5
    min_year_matches: int = 2
    min_make_matches: int = 2
    min_vin_matches: int = 1
    min_cost_matches: int = 1

    def __post_init__(self) -> None:
        for name in (
            "sample_size",
            "min_year_matches",
            "min_make_matches",
            "min_vin_matches",
            "min_cost_matches",
        ):
            value = _to_non_negative_int(getattr(self, name), name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1")

    def min_matches(self, field_name: str) -> int:
        return int(getattr(self, f"min_{field_name}_matches"))


@dataclass
class ColumnScore:
    """Match counters for one column of the scoring sample."""

    year: int = 0
    make: int = 0
    vin: int = 0
    cost: int = 0
    total: int = 0

    def count(self, field_name: str) -> int:
        return int(getattr(self, field_name))

    def bump(self, field_name: str) -> None:
        setattr(self, field_name, self.count(field_name) + 1)


@dataclass
class ColumnAssignment:
    year: int | None = None
    make: int | None = None
    vin: int | None = None
    cost: int | None = None

    def get(self, field_name: str) -> int | None:
        return getattr(self, field_name)

    def missing(self) -> list[str]:
        return [name for name in FIELDS if self.get(name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing()

    def letters(self) -> dict[str, str]:
        """Spreadsheet column letters of the resolved fields."""
        letters: dict[str, str] = {}
        for name in FIELDS:
            index = self.get(name)
            if index is not None:
                letters[name] = get_column_letter(index + 1)
        return letters


# ── Output ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class OutputRecord:
    year: str
    make: str
    vin: str
    cost: str

    def get(self, field_name: str) -> str:
        return str(getattr(self, field_name))


@dataclass
class OutputGrid:
    """Fixed header row followed by one row per accepted record."""

    header: tuple[str, ...]
    positions: dict[str, int]
    records: list[OutputRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        width = len(self.header)
        for name in FIELDS:
            if name not in self.positions:
                raise ValueError(f"positions is missing field {name!r}")
            if not 0 <= self.positions[name] < width:
                raise ValueError(f"position for {name!r} is outside the header")

    @property
    def width(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def extent(self) -> str:
        """A1-style range from the header cell to the last record row/column."""
        return f"A1:{get_column_letter(self.width)}{self.row_count + 1}"

    def rows(self) -> list[list[str]]:
        out: list[list[str]] = [list(self.header)]
        for record in self.records:
            row = [""] * self.width
            for name in FIELDS:
                row[self.positions[name]] = record.get(name)
            out.append(row)
        return out


# ── Results ──────────────────────────────────────────────────────


class ErrorKind(str, Enum):
    EMPTY_GRID = "empty_grid"
    HEADER_NOT_FOUND = "header_not_found"
    NO_DATA_AFTER_HEADER = "no_data_after_header"
    COLUMN_NOT_FOUND = "column_not_found"
    NO_VALID_ROWS = "no_valid_rows"


_FIELD_LABELS: dict[str, str] = {"year": "Year", "make": "Make", "vin": "VIN", "cost": "Cost"}

_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_GRID: "Uploaded sheet is empty.",
    ErrorKind.HEADER_NOT_FOUND: (
        "Input sheet is missing a header row containing Year, Make, VIN, "
        "and Cost or Stated Value."
    ),
    ErrorKind.NO_DATA_AFTER_HEADER: "No data found after the header row.",
    ErrorKind.COLUMN_NOT_FOUND: "Cannot reliably find the {label} column.",
    ErrorKind.NO_VALID_ROWS: (
        "No valid data rows (Year/Make/VIN/Cost) were found in the file."
    ),
}


@dataclass(frozen=True)
class NormalizeFailure:
    kind: ErrorKind
    message: str
    field: str | None = None

    @classmethod
    def of(cls, kind: ErrorKind, field_name: str | None = None) -> NormalizeFailure:
        if (kind is ErrorKind.COLUMN_NOT_FOUND) != (field_name is not None):
            raise ValueError("field is required for column_not_found, and only for it")
        label = _FIELD_LABELS.get(field_name or "", "")
        return cls(kind=kind, message=_ERROR_MESSAGES[kind].format(label=label), field=field_name)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "field": self.field, "message": self.message}


@dataclass
class QCReport:
    """Quality-control report emitted alongside every run.

    Contract invariant: ``dropped_rows == rows_in - rows_out``.
    """

    rows_in: int = 0
    rows_out: int = 0
    dropped_rows: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    header_row: int | None = None
    strategy: str = ""
    columns: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        self.skipped = _to_count_map(self.skipped, "skipped")
        if self.header_row is not None:
            self.header_row = _to_non_negative_int(self.header_row, "header_row")
        self.columns = {str(k): str(v) for k, v in (self.columns or {}).items()}
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        expected_dropped = self.rows_in - self.rows_out
        if self.dropped_rows != expected_dropped:
            raise ValueError("dropped_rows must equal rows_in - rows_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "dropped_rows": self.dropped_rows,
            "skipped": dict(self.skipped),
            "header_row": self.header_row,
            "strategy": self.strategy,
            "columns": dict(self.columns),
            "warnings": list(self.warnings),
        }


@dataclass
class NormalizeResult:
    """Either a normalized grid or a classified failure, never both."""

    qc: QCReport
    grid: OutputGrid | None = None
    error: NormalizeFailure | None = None

    def __post_init__(self) -> None:
        if (self.grid is None) == (self.error is None):
            raise ValueError("exactly one of grid or error must be set")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def row_count(self) -> int:
        return self.grid.row_count if self.grid is not None else 0


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "fleet-normalizer"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    output_dir: str = ""
    output_path: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    rows_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
