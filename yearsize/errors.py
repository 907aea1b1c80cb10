from __future__ import annotations

from pathlib import Path


class YearSizeError(Exception):
    """Base class for errors raised by yearsize."""


class RootUnavailableError(YearSizeError):
    """The scan root cannot be traversed at all."""

    def __init__(self, root: Path | str, reason: str) -> None:
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"{self.root}: {reason}")


class MetadataUnavailableError(YearSizeError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read metadata for {self.path}: {reason}")


class ScanTimeoutError(YearSizeError):
    def __init__(self, root: Path | str, timeout: float) -> None:
        self.root = Path(root)
        self.timeout = timeout
        super().__init__(f"Scan of {self.root} did not finish within {timeout:g}s")


class InvalidTargetYearError(YearSizeError, ValueError):
    def __init__(self, year: int) -> None:
        self.year = year
        super().__init__(f"Target year must be a positive integer, got {year}")


class ConfigError(YearSizeError):
    pass
