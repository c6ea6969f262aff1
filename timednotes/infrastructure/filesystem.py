# timednotes/infrastructure/filesystem.py

from __future__ import annotations

import os
import uuid
from datetime import datetime
from pathlib import Path


# ───────────────────────── public API ─────────────────────────

def atomic_write_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
) -> None:
    """
    Atomic-ish file write:
    - create the parent directory if needed
    - write to temp file in same directory
    - fsync
    - replace()

    The previous file stays intact if anything before replace() fails.
    """
    path = Path(path)
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)

    tmp_name = f".{path.name}.tmp-{uuid.uuid4().hex}"
    tmp_path = parent / tmp_name

    f = None
    try:
        # newline="": records carry their own terminators, \r inside text included
        f = open(tmp_path, "w", encoding=encoding, newline="")
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
        f.close()
        f = None

        tmp_path.replace(path)

    finally:
        try:
            if f is not None:
                f.close()
        except OSError:
            pass

        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass


def read_text(path: Path, *, encoding: str = "utf-8-sig") -> str:
    """Read a data file without newline translation (utf-8-sig drops a BOM)."""
    with open(Path(path), "r", encoding=encoding, newline="") as f:
        return f.read()


def write_recovery_copy(recovery_dir: Path, data_path: Path, text: str) -> Path:
    """
    Emergency save when the normal save fails.

    Writes a timestamped copy into recovery_dir, e.g.
      notes.recovery.20240131-181502.csv
    """
    data_path = Path(data_path)

    stem = data_path.stem or "notes"
    suffix = data_path.suffix or ".csv"
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")

    recovery_path = Path(recovery_dir) / f"{stem}.recovery.{ts}{suffix}"
    atomic_write_text(recovery_path, text, encoding="utf-8")

    return recovery_path
