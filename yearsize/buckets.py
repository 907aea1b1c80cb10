from __future__ import annotations

from datetime import datetime, timezone

from yearsize.errors import InvalidTargetYearError


def validate_target_year(target_year: int | None) -> int | None:
    """Reject non-positive years instead of treating them as "no year given"."""
    if target_year is None:
        return None
    if target_year <= 0:
        raise InvalidTargetYearError(target_year)
    return target_year


def classify(modified_at: datetime, target_year: int | None) -> int | None:
    """Return the bucket key for a file, or ``None`` when no bucket applies.

    Without a target year the key is the calendar year of ``modified_at``.
    With one, files from that year are keyed by month (1-12) and files from
    any other year get ``None``. Naive datetimes are taken to be UTC.
    """
    if modified_at.tzinfo is None:
        modified_at = modified_at.replace(tzinfo=timezone.utc)
    else:
        modified_at = modified_at.astimezone(timezone.utc)

    if target_year is None:
        return modified_at.year
    if modified_at.year == target_year:
        return modified_at.month
    return None
