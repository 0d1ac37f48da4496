from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from openslots.domain.scheduling.errors import ErrorKind, SchedulingError
from openslots.domain.scheduling.time_calculator import (
    contains,
    discretize,
    local_datetime,
    merge_intervals,
    minutes_to_time,
    normalize_date,
    parse_date,
    subtract_interval,
    time_to_minutes,
)

TZ = "America/New_York"


def test_time_to_minutes_accepts_single_digit_hours() -> None:
    assert time_to_minutes("09:30") == 570
    assert time_to_minutes("9:30") == 570
    assert time_to_minutes("00:00") == 0
    assert time_to_minutes("23:59") == 1439


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12", "", None])
def test_time_to_minutes_rejects_malformed_values(value) -> None:
    with pytest.raises(SchedulingError) as exc:
        time_to_minutes(value)
    assert exc.value.kind == ErrorKind.INVALID_FORMAT


def test_end_of_day_is_only_accepted_as_an_interval_end() -> None:
    assert time_to_minutes("24:00", allow_end_of_day=True) == 1440
    assert time_to_minutes("17:00", allow_end_of_day=True) == 1020
    with pytest.raises(SchedulingError):
        time_to_minutes("24:30", allow_end_of_day=True)


def test_minutes_to_time_pads_and_renders_end_of_day() -> None:
    assert minutes_to_time(545) == "09:05"
    assert minutes_to_time(1440) == "24:00"
    with pytest.raises(SchedulingError):
        minutes_to_time(1441)


def test_merge_intervals_joins_overlapping_and_touching() -> None:
    assert merge_intervals([(600, 660), (540, 600), (700, 720), (710, 800)]) == [(540, 660), (700, 800)]


def test_merge_intervals_drops_empty_intervals() -> None:
    assert merge_intervals([(600, 600), (540, 570)]) == [(540, 570)]


def test_subtract_interval_splits_around_block() -> None:
    assert subtract_interval([(540, 1020)], (720, 780)) == [(540, 720), (780, 1020)]


def test_subtract_interval_ignores_touching_block() -> None:
    assert subtract_interval([(540, 600)], (600, 660)) == [(540, 600)]


def test_subtract_interval_removes_covered_interval() -> None:
    assert subtract_interval([(600, 660)], (540, 720)) == []


def test_discretize_steps_from_interval_start_and_drops_remainder() -> None:
    slots = discretize([(540, 640), (700, 730)], 30)
    assert slots == [(540, 570), (570, 600), (600, 630), (700, 730)]


def test_contains_requires_a_single_free_interval() -> None:
    free = [(540, 600), (600, 660)]
    assert contains(free, 540, 600)
    assert not contains(free, 570, 630)
    assert not contains([], 540, 570)


def test_parse_date_takes_plain_dates_literally() -> None:
    assert parse_date("2026-03-03", TZ) == date(2026, 3, 3)
    assert normalize_date(date(2026, 3, 3), TZ) == "2026-03-03"


def test_parse_date_converts_aware_datetimes_to_business_timezone() -> None:
    # 02:00 UTC on the 3rd is still the evening of the 2nd in New York
    assert parse_date(datetime(2026, 3, 3, 2, 0, tzinfo=timezone.utc), TZ) == date(2026, 3, 2)
    assert parse_date("2026-03-03T02:00:00Z", TZ) == date(2026, 3, 2)


def test_parse_date_rejects_garbage() -> None:
    with pytest.raises(SchedulingError) as exc:
        parse_date("03/03/2026", TZ)
    assert exc.value.kind == ErrorKind.INVALID_FORMAT


def test_local_datetime_uses_business_offset() -> None:
    start = local_datetime(date(2026, 3, 3), 600, TZ)
    assert start.isoformat() == "2026-03-03T10:00:00-05:00"
