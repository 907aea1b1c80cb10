from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from yearsize.aggregator import scan_root
from yearsize.buckets import validate_target_year
from yearsize.config import ScanConfig, config_as_dict, load_config, parse_size, with_overrides
from yearsize.errors import ConfigError, InvalidTargetYearError, RootUnavailableError, ScanTimeoutError
from yearsize.models import ScanReport
from yearsize.report import build_table, reports_to_json


app = typer.Typer(help="Total file sizes per modification year, or per month of one year.")
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("yearsize")


def split_year_argument(args: list[str]) -> tuple[list[str], int | None]:
    """Treat a trailing integer as the target year when at least one path precedes it."""
    if len(args) < 2:
        return list(args), None
    try:
        year = int(args[-1])
    except ValueError:
        return list(args), None
    return list(args[:-1]), year


def unique_folders(folders: list[str]) -> list[str]:
    """Drop folders that resolve to one already listed, keeping the first spelling."""
    seen: set[Path] = set()
    unique: list[str] = []
    for folder in folders:
        try:
            key = Path(folder).expanduser().resolve()
        except (OSError, RuntimeError):
            key = Path(folder).expanduser().absolute()
        if key in seen:
            logger.debug("Skipping %s: same folder as an earlier argument", folder)
            continue
        seen.add(key)
        unique.append(folder)
    return unique


def _configure_logging(verbose: bool) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, show_time=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def _resolve_config(
    threshold: str | None,
    workers: int | None,
    timeout: float | None,
) -> ScanConfig:
    config = load_config()
    threshold_bytes = None
    if threshold is not None:
        try:
            threshold_bytes = parse_size(threshold)
        except ValueError as exc:
            raise ConfigError(str(exc)) from None
    return with_overrides(
        config,
        threshold_bytes=threshold_bytes,
        max_workers=workers,
        timeout=timeout,
    )


def _scan_one(root: str, target_year: int | None, config: ScanConfig) -> ScanReport | None:
    try:
        with err_console.status(f"Scanning {escape(root)} ..."):
            return scan_root(
                root,
                target_year,
                max_workers=config.max_workers,
                batch_size=config.batch_size,
                timeout=config.timeout,
            )
    except (RootUnavailableError, ScanTimeoutError) as exc:
        err_console.print(f"[red]Error in folder '{escape(root)}':[/red] {escape(str(exc))}", soft_wrap=True)
        return None


@app.command(context_settings={"ignore_unknown_options": True})
def main(
    paths: list[str] = typer.Argument(
        ...,
        help="Folder(s) to scan. A trailing integer is read as the target year.",
    ),
    year: int | None = typer.Option(
        None,
        "--year",
        "-y",
        help="Report per month for this year instead of per year.",
    ),
    threshold: str | None = typer.Option(
        None,
        "--threshold",
        "-t",
        help="Only show buckets larger than this size (default: 10MB).",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Number of metadata worker threads (default: CPU count).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=0.001,
        help="Abandon a folder's scan after this many seconds.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped entries and scan summaries."),
) -> None:
    """Scan each folder and show buckets whose total exceeds the threshold."""
    _configure_logging(verbose)
    folders, positional_year = split_year_argument(paths)

    if positional_year is not None and year is not None and positional_year != year:
        err_console.print(f"[red]Conflicting target years:[/red] {positional_year} and --year {year}")
        raise typer.Exit(code=2)

    try:
        target_year = validate_target_year(year if year is not None else positional_year)
        config = _resolve_config(threshold, workers, timeout)
    except InvalidTargetYearError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2)

    logger.debug("Effective configuration: %s", config_as_dict(config))

    reports: list[ScanReport] = []
    failed = 0
    for folder in unique_folders(folders):
        report = _scan_one(folder, target_year, config)
        if report is None:
            failed += 1
            continue
        reports.append(report)
        if not as_json:
            console.print(build_table(report, config.threshold_bytes))

    if as_json:
        typer.echo(reports_to_json(reports, config.threshold_bytes))

    raise typer.Exit(code=1 if failed else 0)
