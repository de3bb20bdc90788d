"""Filesystem helpers: artifact discovery and atomic writes."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

__all__ = ["atomic_write_text", "find_latest"]


def find_latest(directory: Path, pattern: str) -> Path | None:
    """Return the most recently modified file in directory matching pattern.

    Returns None if the directory does not exist or nothing matches.
    Ties on mtime are broken by name so the result is deterministic.
    """
    if not directory.is_dir():
        return None

    candidates: list[tuple[float, str, Path]] = []
    for path in directory.glob(pattern):
        try:
            if not path.is_file():
                continue
            candidates.append((path.stat().st_mtime, path.name, path))
        except OSError:
            # Vanished between glob and stat
            continue

    if not candidates:
        return None
    return max(candidates)[2].resolve()


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
