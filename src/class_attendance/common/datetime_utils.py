from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..core.exceptions import ValidationError

DateLike = Union[str, date, datetime]


def _parse_datetime(value: str) -> datetime:
    v = value.strip()
    if not v:
        raise ValidationError("Date is required")
    # fromisoformat() only accepts a trailing 'Z' from Python 3.11 on.
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def to_local_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting an aware datetime to server local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def start_of_day(value: DateLike) -> datetime:
    """Normalize a date, datetime or ISO string to local midnight.

    Every attendance date goes through here before it is stored or compared,
    so two marks on the same calendar day share one key.
    """

    if isinstance(value, datetime):
        dt = to_local_naive(value)
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    elif isinstance(value, str):
        dt = to_local_naive(_parse_datetime(value))
    else:
        raise ValidationError(f"Invalid date: {value!r}")
    return datetime.combine(dt.date(), time.min)


def end_of_day(value: DateLike) -> datetime:
    return start_of_day(value) + timedelta(days=1) - timedelta(microseconds=1)


def day_bounds(value: DateLike) -> tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59.999999] bounds of one calendar day."""
    return start_of_day(value), end_of_day(value)


def optional_range(start: Optional[DateLike], end: Optional[DateLike]) -> Optional[tuple[datetime, datetime]]:
    """Build a day-aligned range only when both bounds are present."""

    if not start or not end:
        return None
    lo = start_of_day(start)
    hi = end_of_day(end)
    if hi < lo:
        raise ValidationError("startDate must not be after endDate")
    return lo, hi
