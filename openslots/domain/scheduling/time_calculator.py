"""Time parsing and interval arithmetic for availability calculations.

Times of day are handled as integer minutes since midnight; intervals are
half-open ``(start, end)`` tuples so that an interval ending at 10:00 and
one starting at 10:00 do not overlap.
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterable, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ErrorKind, SchedulingError

Interval = tuple[int, int]

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def time_to_minutes(value: str, allow_end_of_day: bool = False) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    "24:00" is only accepted as the end of an interval (``allow_end_of_day``).
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Invalid time format: {value!r}. Expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if allow_end_of_day and hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Time out of range: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"; 1440 renders as "24:00" (end of day)"""
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def get_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Unknown timezone: {tz_name}") from e


def parse_date(value: Union[str, date, datetime], tz_name: str) -> date:
    """
    Resolve a date value to a calendar date in the business timezone.

    Plain "YYYY-MM-DD" strings are taken literally and never round-tripped
    through UTC midnight. Timezone-aware datetimes (or ISO strings carrying
    an offset) are converted to the business timezone first; naive
    datetimes are assumed to already be business-local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(get_zone(tz_name)).date()
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        raw = value.strip()
        try:
            if _DATE_PATTERN.match(raw):
                return date.fromisoformat(raw)
            return parse_date(datetime.fromisoformat(raw.replace("Z", "+00:00")), tz_name)
        except ValueError:
            pass

    raise SchedulingError(ErrorKind.INVALID_FORMAT, f"Invalid date: {value!r}. Expected YYYY-MM-DD")


def normalize_date(value: Union[str, date, datetime], tz_name: str) -> str:
    """Canonical "YYYY-MM-DD" form of a date value"""
    return parse_date(value, tz_name).isoformat()


def local_datetime(day: date, minutes: int, tz_name: str) -> datetime:
    """Timezone-aware datetime for a time of day on a business-local date"""
    midnight = datetime(day.year, day.month, day.day, tzinfo=get_zone(tz_name))
    return midnight + timedelta(minutes=minutes)


def intervals_overlap(s1: int, e1: int, s2: int, e2: int) -> bool:
    """Half-open overlap test; touching intervals do not overlap"""
    return s1 < e2 and s2 < e1


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Union intervals into sorted, maximal, non-overlapping intervals"""
    merged: list[Interval] = []
    for start, end in sorted(i for i in intervals if i[0] < i[1]):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def subtract_interval(open_set: list[Interval], blocked: Interval) -> list[Interval]:
    """Remove one blocked interval; each open interval may become zero, one or two pieces"""
    b_start, b_end = blocked
    result: list[Interval] = []
    for start, end in open_set:
        if not intervals_overlap(start, end, b_start, b_end):
            result.append((start, end))
            continue
        if start < b_start:
            result.append((start, b_start))
        if b_end < end:
            result.append((b_end, end))
    return result


def subtract_intervals(open_set: list[Interval], blocked: Iterable[Interval]) -> list[Interval]:
    for interval in blocked:
        open_set = subtract_interval(open_set, interval)
    return open_set


def discretize(free_set: list[Interval], granularity: int) -> list[Interval]:
    """
    Cut free intervals into slots of ``granularity`` minutes.

    Each interval is stepped from its own start; a remainder shorter than one
    slot is dropped.
    """
    slots: list[Interval] = []
    for start, end in sorted(free_set):
        cursor = start
        while cursor + granularity <= end:
            slots.append((cursor, cursor + granularity))
            cursor += granularity
    return slots


def contains(free_set: list[Interval], start: int, end: int) -> bool:
    """True when [start, end) lies entirely inside one free interval"""
    return any(f_start <= start and end <= f_end for f_start, f_end in free_set)
