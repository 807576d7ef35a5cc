"""Client-side filtering, search and facets.

The pages load whole collections from the backend and narrow them down
in memory. Each page has a criteria structure listing every filter it
recognises; unset fields (``None`` or empty) do not filter. All set
criteria are combined with AND.

Facets (the year and month pickers, the week picker) are derived from
the loaded weeks so that only values that actually occur are offered.
Dates are read in the display time zone when one is given.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Iterable, List, Mapping, Optional

from dateutil.parser import parse as parse_date  # type: ignore

from ..errors import ValidationError
from ..models import Person, Review, WeekPeriod


def _local(value: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is not None and value.tzinfo is not None:
        return value.astimezone(tz)
    return value


def _int_arg(args: Mapping[str, str], name: str, low: int, high: int) -> Optional[int]:
    raw = (args.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"Invalid '{name}'. Use a whole number.", {name: raw})
    if not low <= value <= high:
        raise ValidationError(f"Invalid '{name}'. Use a value between {low} and {high}.", {name: raw})
    return value


def date_arg(args: Mapping[str, str], name: str) -> Optional[date]:
    raw = (args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return parse_date(raw).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid '{name}' date. Use ISO format YYYY-MM-DD.", {name: raw})


def _str_arg(args: Mapping[str, str], name: str) -> Optional[str]:
    raw = (args.get(name) or "").strip()
    return raw or None


@dataclass(frozen=True)
class PeriodFilter:
    """Criteria of the weeks list.

    ``year``: keep weeks starting in that year.
    ``month``: 1 to 12, keep weeks starting in that month.
    """
    year: Optional[int] = None
    month: Optional[int] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "PeriodFilter":
        return cls(year=_int_arg(args, "year", 1, 9999), month=_int_arg(args, "month", 1, 12))


@dataclass(frozen=True)
class ReviewFilter:
    """Criteria of the reviews browse page.

    ``search``: case-insensitive substring of any content section or of
    the owning week's title.
    ``year`` / ``month``: the owning week starts in that year / month.
    ``week_id``: the review belongs to that specific week.
    ``date_from`` / ``date_to``: the owning week starts strictly between
    the two dates; both must be given for the range to apply.
    """
    search: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    week_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "ReviewFilter":
        return cls(
            search=_str_arg(args, "search"),
            year=_int_arg(args, "year", 1, 9999),
            month=_int_arg(args, "month", 1, 12),
            week_id=_str_arg(args, "week_id"),
            date_from=date_arg(args, "from"),
            date_to=date_arg(args, "to"),
        )

    @property
    def has_range(self) -> bool:
        return self.date_from is not None and self.date_to is not None


@dataclass(frozen=True)
class PeopleFilter:
    """Criteria of the minister and children rosters.

    ``search``: case-insensitive substring of first, last or full name,
    or of the phone number.
    ``age_group`` / ``role``: the person carries that tag.
    """
    search: Optional[str] = None
    age_group: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "PeopleFilter":
        return cls(
            search=_str_arg(args, "search"),
            age_group=_str_arg(args, "age_group"),
            role=_str_arg(args, "role"),
        )


@dataclass(frozen=True)
class MonthFacet:
    value: int
    label: str


@dataclass(frozen=True)
class YearFacet:
    value: int
    months: List[MonthFacet] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------


def period_title(period: WeekPeriod, tz: Optional[tzinfo] = None) -> str:
    """Display title of a week, e.g. ``"Week of Mar 3, 2024"``."""
    start = _local(period.start_time, tz)
    return f"Week of {start:%b} {start.day}, {start.year}"


def period_facets(periods: Iterable[WeekPeriod], tz: Optional[tzinfo] = None) -> List[YearFacet]:
    """Years present (newest first), each with its months present (ascending)."""
    months_by_year: dict[int, set[int]] = {}
    for period in periods:
        start = _local(period.start_time, tz)
        months_by_year.setdefault(start.year, set()).add(start.month)
    return [
        YearFacet(
            value=year,
            months=[MonthFacet(value=m, label=calendar.month_name[m]) for m in sorted(months_by_year[year])],
        )
        for year in sorted(months_by_year, reverse=True)
    ]


def default_year(periods: Iterable[WeekPeriod], today: date, tz: Optional[tzinfo] = None) -> Optional[int]:
    """Year preselected on the weeks page: this year if present, else the latest."""
    years = [facet.value for facet in period_facets(periods, tz)]
    if today.year in years:
        return today.year
    return years[0] if years else None


def available_months(periods: Iterable[WeekPeriod], year: Optional[int], tz: Optional[tzinfo] = None) -> List[int]:
    if year is None:
        return []
    return sorted({_local(p.start_time, tz).month for p in periods if _local(p.start_time, tz).year == year})


def available_periods(
    periods: Iterable[WeekPeriod],
    year: Optional[int] = None,
    month: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> List[WeekPeriod]:
    """Weeks offered by the week picker, newest first."""
    result = [p for p in periods if _matches_year_month(_local(p.start_time, tz), year, month)]
    result.sort(key=lambda p: p.start_time, reverse=True)
    return result


def _matches_year_month(start: datetime, year: Optional[int], month: Optional[int]) -> bool:
    if year is not None and start.year != year:
        return False
    if month is not None and start.month != month:
        return False
    return True


def filter_periods(
    periods: Iterable[WeekPeriod], criteria: PeriodFilter, tz: Optional[tzinfo] = None
) -> List[WeekPeriod]:
    """Apply the year and month facets; oldest week first."""
    result = [p for p in periods if _matches_year_month(_local(p.start_time, tz), criteria.year, criteria.month)]
    result.sort(key=lambda p: p.start_time)
    return result


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


def _review_matches_search(review: Review, period: Optional[WeekPeriod], needle: str, tz: Optional[tzinfo]) -> bool:
    haystacks = [review.what_went_well, review.can_improve, review.action_plans, review.summary]
    if period is not None:
        haystacks.append(period_title(period, tz))
    return any(needle in text.lower() for text in haystacks)


def filter_reviews(
    reviews: Iterable[Review],
    periods_by_id: Mapping[str, WeekPeriod],
    criteria: ReviewFilter,
    tz: Optional[tzinfo] = None,
) -> List[Review]:
    """Apply every review criterion; newest review first.

    A review whose week is not among ``periods_by_id`` cannot satisfy
    the year, month or range facets and is never matched by week title,
    but it is kept when none of those facets is set.
    """
    needle = criteria.search.lower() if criteria.search else None
    needs_period = criteria.year is not None or criteria.month is not None or criteria.has_range
    result = []
    for review in reviews:
        period = periods_by_id.get(review.week_id)
        if needs_period:
            if period is None:
                continue
            start = _local(period.start_time, tz)
            if not _matches_year_month(start, criteria.year, criteria.month):
                continue
            if criteria.has_range and not (criteria.date_from < start.date() < criteria.date_to):
                continue
        if criteria.week_id and review.week_id != criteria.week_id:
            continue
        if needle and not _review_matches_search(review, period, needle, tz):
            continue
        result.append(review)
    result.sort(key=lambda r: r.created_at.timestamp() if r.created_at else float("-inf"), reverse=True)
    return result


def count_this_month(
    reviews: Iterable[Review],
    periods_by_id: Mapping[str, WeekPeriod],
    today: date,
    tz: Optional[tzinfo] = None,
) -> int:
    """Number of reviews whose week starts in the calendar month of ``today``."""
    count = 0
    for review in reviews:
        period = periods_by_id.get(review.week_id)
        if period is not None and _matches_year_month(_local(period.start_time, tz), today.year, today.month):
            count += 1
    return count


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


def filter_people(people: Iterable[Person], criteria: PeopleFilter) -> List[Person]:
    """Apply search and tag facets, keeping the backend's order."""
    needle = criteria.search.lower() if criteria.search else None
    result = []
    for person in people:
        if needle:
            haystacks = (person.first_name, person.last_name, person.full_name, person.phone)
            if not any(needle in text.lower() for text in haystacks):
                continue
        if criteria.age_group and criteria.age_group not in person.age_group:
            continue
        if criteria.role and criteria.role not in person.roles:
            continue
        result.append(person)
    return result


def tag_facets(people: Iterable[Person]) -> dict[str, List[str]]:
    """Distinct age groups and roles present on the roster, sorted."""
    people = list(people)
    return {
        "age_groups": sorted({tag for person in people for tag in person.age_group}),
        "roles": sorted({tag for person in people for tag in person.roles}),
    }
