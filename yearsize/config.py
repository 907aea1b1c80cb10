from __future__ import annotations

import json
import math
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path

from yearsize.errors import ConfigError


CONFIG_FILENAME = ".yearsize.json"
DEFAULT_THRESHOLD_BYTES = 10 * 1024 * 1024

ENV_THRESHOLD = "YEARSIZE_THRESHOLD"
ENV_WORKERS = "YEARSIZE_WORKERS"
ENV_TIMEOUT = "YEARSIZE_TIMEOUT"

SIZE_UNITS = {
    "TB": 1024**4,
    "GB": 1024**3,
    "MB": 1024**2,
    "KB": 1024,
    "B": 1,
}


@dataclass(slots=True)
class ScanConfig:
    threshold_bytes: int = DEFAULT_THRESHOLD_BYTES
    max_workers: int | None = None
    batch_size: int = 256
    timeout: float | None = None


def _finite_bytes(amount: float, original) -> int:
    if not math.isfinite(amount):
        raise ValueError(f"Size '{original}' is not a finite number")
    return int(amount)


def parse_size(value: str | int) -> int:
    """Parse ``'10MB'``, ``'1.5GB'`` or a plain byte count. Units are binary."""
    if isinstance(value, int):
        return value
    text = value.strip().upper()
    if not text:
        raise ValueError("Empty size value")
    try:
        amount = float(text)
    except ValueError:
        pass
    else:
        return _finite_bytes(amount, value)

    for unit in sorted(SIZE_UNITS, key=len, reverse=True):
        if text.endswith(unit):
            number = text[: -len(unit)].strip()
            try:
                amount = float(number)
            except ValueError:
                break
            return _finite_bytes(amount * SIZE_UNITS[unit], value)
    raise ValueError(f"Invalid size '{value}'. Use forms like '10MB', '1.5GB' or '1048576'.")


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def _positive_int(name: str, value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{name} must be at least 1, got {number}")
    return number


def _positive_float(name: str, value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{name} must be greater than 0, got {number}")
    return number


def _size(name: str, value) -> int:
    try:
        return parse_size(value)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"{name}: {exc}") from None


def _from_file(path: Path) -> ScanConfig:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")

    config = ScanConfig()
    if data.get("threshold") is not None:
        config.threshold_bytes = _size("threshold", data["threshold"])
    if data.get("workers") is not None:
        config.max_workers = _positive_int("workers", data["workers"])
    if data.get("batch_size") is not None:
        config.batch_size = _positive_int("batch_size", data["batch_size"])
    if data.get("timeout") is not None:
        config.timeout = _positive_float("timeout", data["timeout"])
    return config


def load_config(base_dir: Path | None = None) -> ScanConfig:
    """Defaults, then ``.yearsize.json`` if present, then ``YEARSIZE_*`` variables."""
    path = config_path(base_dir)
    config = _from_file(path) if path.is_file() else ScanConfig()

    threshold = os.getenv(ENV_THRESHOLD, "").strip()
    if threshold:
        config.threshold_bytes = _size(ENV_THRESHOLD, threshold)
    workers = os.getenv(ENV_WORKERS, "").strip()
    if workers:
        config.max_workers = _positive_int(ENV_WORKERS, workers)
    timeout = os.getenv(ENV_TIMEOUT, "").strip()
    if timeout:
        config.timeout = _positive_float(ENV_TIMEOUT, timeout)
    return config


def with_overrides(config: ScanConfig, **overrides) -> ScanConfig:
    """Return a copy of ``config`` with every non-``None`` override applied."""
    return replace(config, **{key: value for key, value in overrides.items() if value is not None})


def config_as_dict(config: ScanConfig) -> dict:
    return asdict(config)
