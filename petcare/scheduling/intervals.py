"""Parsing and normalisation of reservation dates, times and intervals.

All instants are naive local timestamps. They are stored as
``YYYY-MM-DD HH:MM:SS``, the same layout SQLite's ``datetime()`` produces, so
stored values can be compared as plain strings inside queries.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from .errors import ValidationError

DEFAULT_SPAN = dt.timedelta(days=1)
INSTANT_FORMAT = "%Y-%m-%d %H:%M:%S"

_TIME_FORMATS = ("%H:%M", "%H:%M:%S")
_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
)


@dataclass(frozen=True)
class Interval:
    """A reservation's occupied time range, half-open: ``[start, end)``."""

    start: dt.datetime
    end: dt.datetime | None = None

    def __post_init__(self) -> None:
        if self.end is not None and self.end <= self.start:
            raise ValidationError("End time must be after start time")

    @property
    def effective_end(self) -> dt.datetime:
        """Explicit end, or one day after the start when none was recorded."""
        return self.end if self.end is not None else self.start + DEFAULT_SPAN

    def start_key(self) -> str:
        return format_instant(self.start)

    def end_key(self) -> str:
        return format_instant(self.effective_end)


def parse_date(value: str) -> dt.date:
    try:
        return dt.datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from exc


def parse_time(value: str) -> dt.time:
    text = str(value).strip()
    for fmt in _TIME_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)")


def parse_datetime(value: str) -> dt.datetime:
    text = str(value).strip()
    for fmt in _DATETIME_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError(f"Invalid date and time: {value!r} (expected YYYY-MM-DD HH:MM)")


def format_instant(value: dt.datetime) -> str:
    return value.strftime(INSTANT_FORMAT)


def format_time(value: dt.time) -> str:
    if value.second:
        return value.strftime("%H:%M:%S")
    return value.strftime("%H:%M")


def normalize_interval(date_value: str, time_value: str, end_value: str | None = None) -> Interval:
    """Build an :class:`Interval` from the raw request fields.

    ``end_value`` may be empty or ``None`` for categories without a real end.
    """

    start = dt.datetime.combine(parse_date(date_value), parse_time(time_value))
    end = parse_datetime(end_value) if end_value not in (None, "") else None
    return Interval(start, end)


def month_bounds(month: str) -> tuple[dt.date, dt.date]:
    """Return the first day of ``month`` (``YYYY-MM``) and the first day after it."""

    try:
        first = dt.datetime.strptime(str(month).strip(), "%Y-%m").date()
    except ValueError as exc:
        raise ValidationError(f"Invalid month: {month!r} (expected YYYY-MM)") from exc
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    return first, following
