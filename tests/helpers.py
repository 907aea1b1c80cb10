from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path


MIB = 1024 * 1024


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_file(root: Path, relative: str, size: int, modified: datetime) -> Path:
    """Create a sparse file of ``size`` bytes with the given mtime."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        fh.truncate(size)
    stamp = modified.timestamp()
    os.utime(path, (stamp, stamp))
    return path
