from __future__ import annotations

import json

from rich.markup import escape
from rich.table import Table

from yearsize.models import ScanReport


BYTES_PER_GIB = 1024**3


def to_gib(size_bytes: int) -> float:
    return size_bytes / BYTES_PER_GIB


def format_gib(size_bytes: int) -> str:
    return f"{to_gib(size_bytes):.6f}"


def buckets_above(totals: dict[int, int], threshold_bytes: int) -> list[tuple[int, int]]:
    """Buckets strictly larger than ``threshold_bytes``, sorted by key."""
    return sorted(
        (key, size) for key, size in totals.items() if size > threshold_bytes
    )


def report_title(report: ScanReport) -> str:
    if report.month_mode:
        return f"File sizes for year {report.target_year} in folder '{escape(str(report.root))}'"
    return f"File sizes by year in folder '{escape(str(report.root))}'"


def build_table(report: ScanReport, threshold_bytes: int) -> Table:
    key_label = "Month" if report.month_mode else "Year"
    table = Table(title=report_title(report))
    table.add_column(key_label, justify="right")
    table.add_column("Total Size (GB)", justify="right")
    for key, size in buckets_above(report.totals, threshold_bytes):
        table.add_row(str(key), format_gib(size))
    return table


def reports_to_json(reports: list[ScanReport], threshold_bytes: int) -> str:
    payload = {
        str(report.root): {
            str(key): size for key, size in buckets_above(report.totals, threshold_bytes)
        }
        for report in reports
    }
    return json.dumps(payload, indent=2)
