"""QC report persistence."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fleet_normalizer.io import write_json
from fleet_normalizer.models import NormalizeFailure, QCReport

INPUT_ERROR = "input_error"
INTERNAL_ERROR = "internal_error"


def run_error(kind: str, message: str) -> dict[str, Any]:
    """Error record for failures outside normalization (loading, bounds, crashes)."""
    return {"kind": kind, "field": None, "message": message}


def write_qc_report(
    out_dir: Path,
    qc: QCReport,
    error: NormalizeFailure | Mapping[str, Any] | None = None,
) -> Path:
    """Write ``qc_report.json`` into *out_dir* and return the path.

    A failed run records its error under ``"error"`` as ``kind``, ``field``
    and ``message``.
    """
    payload = qc.to_dict()
    if isinstance(error, NormalizeFailure):
        payload["error"] = error.to_dict()
    else:
        payload["error"] = dict(error) if error is not None else None
    return write_json(out_dir / "qc_report.json", payload)
