"""Sunday to Saturday week windows.

A week in EagleKidz always runs from Sunday 00:00:00 to the following
Saturday 23:59:59. Users pick any date and the containing window is
created. Before submitting, the page checks the window against the
weeks already loaded so the same week is not created twice; the same
check greys out already-used dates in the date picker.

The duplicate check compares calendar days only (``YYYY-MM-DD`` of the
start and end), never full instants. It is a convenience for the user,
not a guarantee: the backend may or may not apply the same rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional

from ..models import WeekPeriod

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class WeekWindow:
    """The Sunday start and Saturday end of one calendar week."""
    start: datetime
    end: datetime

    def contains(self, value: date | datetime) -> bool:
        moment = _as_datetime(value, self.start.tzinfo)
        return self.start <= moment <= self.end

    @property
    def days(self) -> List[date]:
        first = self.start.date()
        return [first + timedelta(days=offset) for offset in range(7)]

    def to_payload(self) -> dict[str, str]:
        """Request body for ``POST /api/v1/weeks``."""
        return {"start_time": self.start.isoformat(), "end_time": self.end.isoformat()}


def _as_datetime(value: date | datetime, tz: Optional[tzinfo] = None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tz)


def week_window(value: date | datetime) -> WeekWindow:
    """Return the Sunday to Saturday window containing ``value``.

    ``value`` may be a ``date`` or a ``datetime``. No time zone
    conversion happens: an aware datetime keeps its ``tzinfo``, a naive
    one stays naive.
    """
    moment = _as_datetime(value)
    # Python counts Monday as 0; the week here starts on Sunday.
    dow = (moment.weekday() + 1) % 7
    sunday = moment.date() - timedelta(days=dow)
    start = datetime.combine(sunday, time.min, tzinfo=moment.tzinfo)
    end = datetime.combine(sunday + timedelta(days=6), END_OF_DAY, tzinfo=moment.tzinfo)
    return WeekWindow(start=start, end=end)


def calendar_day(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format ``value`` as ``YYYY-MM-DD`` in ``tz`` (aware values only)."""
    if tz is not None and value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.strftime("%Y-%m-%d")


def window_exists(window: WeekWindow, periods: Iterable[WeekPeriod], tz: Optional[tzinfo] = None) -> bool:
    """Return True when a loaded period covers the same calendar days."""
    start = calendar_day(window.start, tz)
    end = calendar_day(window.end, tz)
    return any(
        calendar_day(period.start_time, tz) == start and calendar_day(period.end_time, tz) == end
        for period in periods
    )


def disabled_dates(
    first: date, last: date, periods: Iterable[WeekPeriod], tz: Optional[tzinfo] = None
) -> List[date]:
    """Return every date in ``first..last`` whose week already exists."""
    periods = list(periods)
    result: List[date] = []
    current = first
    while current <= last:
        window = week_window(current)
        if window_exists(window, periods, tz):
            result.extend(day for day in window.days if first <= day <= last)
        # Every day of a window shares the answer; jump to the next Sunday.
        current = window.end.date() + timedelta(days=1)
    return result
