from __future__ import annotations

import logging
import os
import time
from collections import Counter, deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from yearsize.buckets import classify, validate_target_year
from yearsize.errors import MetadataUnavailableError, ScanTimeoutError
from yearsize.models import FileMetadata, ScanReport, WalkError
from yearsize.walker import open_tree, walk_tree


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 256
MAX_DEFAULT_WORKERS = 32
IN_FLIGHT_BATCHES_PER_WORKER = 4


def default_workers() -> int:
    return min(MAX_DEFAULT_WORKERS, os.cpu_count() or 1)


def read_metadata(path: Path | str) -> FileMetadata:
    try:
        stat = os.stat(path)
    except OSError as exc:
        raise MetadataUnavailableError(path, exc.strerror or str(exc)) from exc
    try:
        # Filesystems with 64-bit times can hold mtimes datetime cannot represent.
        modified_at = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
    except (OverflowError, ValueError, OSError) as exc:
        raise MetadataUnavailableError(path, f"unrepresentable mtime {stat.st_mtime!r}: {exc}") from exc
    return FileMetadata(size=stat.st_size, modified_at=modified_at)


@dataclass(slots=True)
class _BatchResult:
    totals: Counter[int] = field(default_factory=Counter)
    counted: int = 0
    skipped: int = 0


class _Deadline:
    def __init__(self, root: Path, timeout: float | None) -> None:
        self.root = root
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def check(self) -> None:
        if self._expires_at is not None and time.monotonic() >= self._expires_at:
            raise ScanTimeoutError(self.root, self.timeout)


def _process_batch(paths: list[Path], target_year: int | None) -> _BatchResult:
    # Runs on a worker thread; only touches its own Counter.
    result = _BatchResult()
    for path in paths:
        try:
            metadata = read_metadata(path)
        except MetadataUnavailableError as exc:
            logger.debug("Skipping %s", exc)
            result.skipped += 1
            continue
        key = classify(metadata.modified_at, target_year)
        if key is None:
            continue
        result.totals[key] += metadata.size
        result.counted += 1
    return result


def _file_batches(
    entries: Iterable,
    batch_size: int,
    report: ScanReport,
    deadline: _Deadline,
) -> Iterator[list[Path]]:
    batch: list[Path] = []
    for entry in entries:
        deadline.check()
        if isinstance(entry, WalkError):
            logger.debug("Skipping unreadable entry %s: %s", entry.path, entry.error)
            report.entries_skipped += 1
            continue
        if not entry.is_file:
            continue
        batch.append(entry.path)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def _merge(report: ScanReport, result: _BatchResult) -> None:
    for key, size in result.totals.items():
        report.totals[key] = report.totals.get(key, 0) + size
    report.files_counted += result.counted
    report.entries_skipped += result.skipped


def scan_root(
    root: Path | str,
    target_year: int | None = None,
    *,
    max_workers: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    timeout: float | None = None,
) -> ScanReport:
    """Walk ``root`` and total file sizes per year, or per month of ``target_year``.

    Metadata reads run on a thread pool while the walk proceeds on the calling
    thread. Each batch is totalled into its own ``Counter`` and the partial
    totals are merged here once each batch finishes, so no state is shared
    between workers.

    Raises:
        InvalidTargetYearError: ``target_year`` is zero or negative.
        RootUnavailableError: ``root`` is missing, not a directory, or unreadable.
        ScanTimeoutError: ``timeout`` elapsed; no partial totals are returned.
    """
    target_year = validate_target_year(target_year)
    root_path = open_tree(root)
    workers = default_workers() if max_workers is None else max_workers
    if workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {workers}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    report = ScanReport(root=root_path, target_year=target_year)
    deadline = _Deadline(root_path, timeout)
    batches = _file_batches(walk_tree(root_path), batch_size, report, deadline)

    if workers == 1:
        for batch in batches:
            _merge(report, _process_batch(batch, target_year))
            deadline.check()
    else:
        _run_batches(report, batches, target_year, workers=workers, deadline=deadline)

    logger.info(
        "Scanned %s: %d file(s) in %d bucket(s), %d entr%s skipped",
        root_path,
        report.files_counted,
        len(report.totals),
        report.entries_skipped,
        "y" if report.entries_skipped == 1 else "ies",
    )
    return report


def _run_batches(
    report: ScanReport,
    batches: Iterator[list[Path]],
    target_year: int | None,
    *,
    workers: int,
    deadline: _Deadline,
) -> None:
    max_in_flight = workers * IN_FLIGHT_BATCHES_PER_WORKER
    in_flight: deque[Future[_BatchResult]] = deque()
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="yearsize-scan")
    completed = False
    try:
        for batch in batches:
            in_flight.append(executor.submit(_process_batch, batch, target_year))
            while len(in_flight) >= max_in_flight:
                _merge(report, in_flight.popleft().result(timeout=deadline.remaining()))
        while in_flight:
            _merge(report, in_flight.popleft().result(timeout=deadline.remaining()))
        completed = True
    except FuturesTimeoutError:
        raise ScanTimeoutError(deadline.root, deadline.timeout) from None
    finally:
        if not completed:
            for future in in_flight:
                future.cancel()
        executor.shutdown(wait=completed, cancel_futures=not completed)


def aggregate(
    root: Path | str,
    target_year: int | None = None,
    *,
    max_workers: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    timeout: float | None = None,
) -> dict[int, int]:
    """Return ``{bucket_key: total_bytes}`` for every regular file under ``root``."""
    return scan_root(
        root,
        target_year,
        max_workers=max_workers,
        batch_size=batch_size,
        timeout=timeout,
    ).totals
