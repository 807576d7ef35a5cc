"""Page logic for the EagleKidz admin tool.

This package contains the logic that sits between the Flask route
handlers and the backend client: week windows, in-memory filtering and
facets, and the soft delete bookkeeping of the roster and review
pages. Keeping it apart from the routes makes these calculations easy
to unit test.

Nothing in this package should perform any HTTP handling. Services
work on the dataclasses from ``eaglekidz_admin.models`` and raise the
exceptions defined in ``eaglekidz_admin.errors`` when something goes
wrong.
"""

from .filters import (
    PeopleFilter,
    PeriodFilter,
    ReviewFilter,
    available_months,
    available_periods,
    count_this_month,
    default_year,
    filter_people,
    filter_periods,
    filter_reviews,
    period_facets,
    period_title,
    tag_facets,
)
from .soft_delete_service import LifecycleState, SoftDeleteGateway, SoftDeleteLedger
from .week_window import WeekWindow, disabled_dates, week_window, window_exists

__all__ = [
    "LifecycleState",
    "PeopleFilter",
    "PeriodFilter",
    "ReviewFilter",
    "SoftDeleteGateway",
    "SoftDeleteLedger",
    "WeekWindow",
    "available_months",
    "available_periods",
    "count_this_month",
    "default_year",
    "disabled_dates",
    "filter_people",
    "filter_periods",
    "filter_reviews",
    "period_facets",
    "period_title",
    "tag_facets",
    "week_window",
    "window_exists",
]
