"""Shared helpers — hashing, timestamps, run ids."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone
from pathlib import Path

_CHUNK = 64 * 1024


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        while chunk := fh.read(_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()


def utcnow_iso(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp (current time unless *now* is given)."""
    return (now or datetime.now(timezone.utc)).astimezone(timezone.utc).isoformat()


def make_run_id(now: datetime | None = None) -> str:
    """Compact sortable id, e.g. ``20261019T142501Z-3fa9c1``."""
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{stamp.strftime('%Y%m%dT%H%M%SZ')}-{secrets.token_hex(3)}"
