from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class WalkEntry:
    path: Path
    is_file: bool


@dataclass(slots=True, frozen=True)
class WalkError:
    path: Path
    error: OSError


@dataclass(slots=True, frozen=True)
class FileMetadata:
    size: int
    modified_at: datetime


@dataclass(slots=True)
class ScanReport:
    root: Path
    target_year: int | None
    totals: dict[int, int] = field(default_factory=dict)
    files_counted: int = 0
    entries_skipped: int = 0

    @property
    def total_bytes(self) -> int:
        return sum(self.totals.values())

    @property
    def month_mode(self) -> bool:
        return self.target_year is not None
