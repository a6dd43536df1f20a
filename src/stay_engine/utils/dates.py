"""Calendar-date helpers.

Every date key used by the engine is a ``YYYY-MM-DD`` string built from the
year/month/day fields of a :class:`datetime.date`. Dates are never derived from
epoch timestamps, so a key cannot drift by a day across timezone offsets.
"""
from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Iterator, List, Union

from stay_engine.errors import InvalidDateRange

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, str]


def ymd(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def is_iso_date(value: object) -> bool:
    return isinstance(value, str) and bool(ISO_DATE_RE.match(value))


def parse_iso(value: DateLike) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, date):
        return value
    if not is_iso_date(value):
        raise InvalidDateRange(f"Not a calendar date: {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDateRange(f"Not a calendar date: {value!r}") from exc


def add_days(value: DateLike, days: int) -> str:
    return ymd(parse_iso(value) + timedelta(days=days))


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    for day in range(value.day, 0, -1):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    raise ValueError(f"Cannot shift {value} by {months} months")  # pragma: no cover


def nights_between(check_in: DateLike, check_out: DateLike) -> int:
    return (parse_iso(check_out) - parse_iso(check_in)).days


def iter_nights(check_in: DateLike, check_out: DateLike) -> Iterator[str]:
    """Yield every night key in the half-open interval ``[check_in, check_out)``."""
    cursor = parse_iso(check_in)
    end = parse_iso(check_out)
    step = timedelta(days=1)
    while cursor < end:
        yield ymd(cursor)
        cursor += step


def night_keys(check_in: DateLike, check_out: DateLike) -> List[str]:
    return list(iter_nights(check_in, check_out))
