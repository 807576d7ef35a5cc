"""Tests for Sunday to Saturday week windows and the duplicate check."""
from datetime import date, datetime, timedelta

from dateutil import tz as dateutil_tz

from eaglekidz_admin.models import WeekPeriod
from eaglekidz_admin.services import disabled_dates, week_window, window_exists
from eaglekidz_admin.services.week_window import calendar_day

from .helpers import utc

SINGAPORE = dateutil_tz.gettz("Asia/Singapore")


def _period(start: datetime, end: datetime, period_id: str = "w1") -> WeekPeriod:
    return WeekPeriod(id=period_id, start_time=start, end_time=end)


def test_midweek_date_maps_to_surrounding_sunday_and_saturday() -> None:
    window = week_window(datetime(2024, 3, 6, 15, 30))
    assert window.start == datetime(2024, 3, 3, 0, 0, 0)
    assert window.end == datetime(2024, 3, 9, 23, 59, 59)
    assert window.to_payload() == {
        "start_time": "2024-03-03T00:00:00",
        "end_time": "2024-03-09T23:59:59",
    }


def test_every_day_of_a_week_gives_the_same_window() -> None:
    expected = week_window(date(2024, 3, 3))
    for offset in range(7):
        assert week_window(date(2024, 3, 3) + timedelta(days=offset)) == expected


def test_window_boundaries() -> None:
    window = week_window(datetime(2024, 3, 9, 23, 59, 59))
    assert window.start.weekday() == 6  # Sunday
    assert window.end.weekday() == 5  # Saturday
    assert window.start.time().isoformat() == "00:00:00"
    assert window.end.time().isoformat() == "23:59:59"
    assert window.contains(datetime(2024, 3, 9, 23, 59, 59))
    assert not window.contains(datetime(2024, 3, 10))
    assert window.contains(date(2024, 3, 3))


def test_window_of_window_start_is_the_same_window() -> None:
    window = week_window(datetime(2024, 12, 31, 8))
    assert week_window(window.start) == window
    assert week_window(window.end) == window


def test_window_crosses_year_boundary() -> None:
    window = week_window(date(2025, 1, 1))
    assert window.start == datetime(2024, 12, 29)
    assert window.end.date() == date(2025, 1, 4)
    assert window.days[0] == date(2024, 12, 29)
    assert window.days[-1] == date(2025, 1, 4)
    assert len(window.days) == 7


def test_aware_datetime_keeps_its_timezone() -> None:
    window = week_window(datetime(2024, 3, 6, 1, tzinfo=SINGAPORE))
    assert window.start.tzinfo is SINGAPORE
    assert window.start == datetime(2024, 3, 3, tzinfo=SINGAPORE)
    assert window.to_payload()["start_time"] == "2024-03-03T00:00:00+08:00"


def test_existing_week_is_detected_by_calendar_day() -> None:
    periods = [_period(utc(2024, 1, 7), utc(2024, 1, 13, 23, 59, 59))]
    assert window_exists(week_window(utc(2024, 1, 10)), periods)
    assert not window_exists(week_window(utc(2024, 1, 14)), periods)


def test_calendar_day_comparison_ignores_time_of_day() -> None:
    # Same days, different clock times: still the same week.
    periods = [_period(utc(2024, 1, 7, 9), utc(2024, 1, 13, 12))]
    assert window_exists(week_window(utc(2024, 1, 8)), periods)


def test_calendar_days_are_read_in_display_zone() -> None:
    # Stored in UTC, but it is the week of Jan 7 in Singapore.
    periods = [_period(utc(2024, 1, 6, 16), utc(2024, 1, 13, 15, 59, 59))]
    picked = week_window(datetime(2024, 1, 9, tzinfo=SINGAPORE))
    assert window_exists(picked, periods, SINGAPORE)
    assert calendar_day(utc(2024, 1, 6, 16), SINGAPORE) == "2024-01-07"

    # UTC midnight to midnight ends on Jan 14 in Singapore.
    utc_periods = [_period(utc(2024, 1, 7), utc(2024, 1, 13, 23, 59, 59))]
    assert window_exists(week_window(utc(2024, 1, 9)), utc_periods, dateutil_tz.UTC)
    assert not window_exists(picked, utc_periods, SINGAPORE)


def test_disabled_dates_cover_existing_weeks_only() -> None:
    periods = [_period(utc(2024, 1, 7), utc(2024, 1, 13, 23, 59, 59))]
    days = disabled_dates(date(2024, 1, 1), date(2024, 1, 31), periods)
    assert days == [date(2024, 1, 7) + timedelta(days=n) for n in range(7)]


def test_disabled_dates_clip_to_requested_range() -> None:
    periods = [_period(utc(2024, 1, 7), utc(2024, 1, 13, 23, 59, 59))]
    days = disabled_dates(date(2024, 1, 10), date(2024, 1, 11), periods)
    assert days == [date(2024, 1, 10), date(2024, 1, 11)]


def test_disabled_dates_without_weeks_is_empty() -> None:
    assert disabled_dates(date(2024, 1, 1), date(2024, 12, 31), []) == []
