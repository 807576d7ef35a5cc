"""
Routes for the weeks pages.

Covers the weeks list (with its year/month facets), week creation from
a picked date, the date picker helpers and the service assignments of
a week. Weeks are only ever hard deleted.
"""

from __future__ import annotations

from dataclasses import asdict, replace
from datetime import datetime, time, timedelta

from dateutil.parser import parse as parse_date  # type: ignore
from flask import Blueprint, request

from .. import display_tz, get_api, json_object, today
from ..client import fetch_all, require_data
from ..errors import ConflictError, ValidationError
from ..models import DEFAULT_SERVICES, PersonType
from ..schemas import ServiceAssignmentSchema, ServicesInputSchema, WeekPeriodSchema
from ..services import (
    PeriodFilter,
    default_year,
    disabled_dates,
    filter_periods,
    period_facets,
    period_title,
    week_window,
    window_exists,
)
from ..services.filters import date_arg


weeks_bp = Blueprint("weeks", __name__)

# Longest range the date picker may ask about in one call.
MAX_PICKER_DAYS = 731


def _dump_period(period) -> dict:
    data = WeekPeriodSchema().dump(period)
    data["title"] = period_title(period, display_tz())
    return data


def _load_periods() -> list:
    return get_api().get_all_weeks().data or []


def _picked_window(raw):
    """Window of the date the user picked, in the display time zone."""
    if not raw:
        raise ValidationError("Please select a date to create a week", {"date": "required"})
    try:
        picked = parse_date(str(raw)).date()
    except (ValueError, OverflowError):
        raise ValidationError("Invalid date format. Use ISO 8601 (YYYY-MM-DD).", {"date": raw})
    return week_window(datetime.combine(picked, time.min, tzinfo=display_tz()))


@weeks_bp.route("/weeks", methods=["GET"])
def list_weeks() -> tuple[dict, int]:
    """Return the weeks list filtered by ``year`` and ``month``.

    Without a ``year`` argument the current year is preselected when it
    has weeks, else the most recent year. Pass ``year=`` (empty) to see
    every year. Weeks are ordered oldest first.
    """
    zone = display_tz()
    periods = _load_periods()
    criteria = PeriodFilter.from_args(request.args)
    if "year" not in request.args:
        criteria = replace(criteria, year=default_year(periods, today(), zone))
    filtered = filter_periods(periods, criteria, zone)
    return {
        "weeks": [_dump_period(p) for p in filtered],
        "facets": [asdict(f) for f in period_facets(periods, zone)],
        "selected": {"year": criteria.year, "month": criteria.month},
        "total": len(filtered),
    }, 200


@weeks_bp.route("/weeks", methods=["POST"])
def create_week() -> tuple[dict, int]:
    """Create the Sunday to Saturday week containing ``date``.

    Returns 409 when the loaded weeks already cover that window.
    """
    data = json_object()
    window = _picked_window(data.get("date"))
    if window_exists(window, _load_periods(), display_tz()):
        raise ConflictError("A week for this period already exists. Please select a different date.")
    envelope = get_api().create_week(**window.to_payload())
    period = require_data(envelope, "Failed to create week. Please try again.")
    return {"message": "Week created successfully!", "week": _dump_period(period)}, 201


@weeks_bp.route("/weeks/window", methods=["GET"])
def preview_window() -> tuple[dict, int]:
    """Show the window a picked date would create and whether it exists."""
    window = _picked_window(request.args.get("date"))
    return {
        "start_time": window.start.isoformat(),
        "end_time": window.end.isoformat(),
        "exists": window_exists(window, _load_periods(), display_tz()),
    }, 200


@weeks_bp.route("/weeks/disabled-dates", methods=["GET"])
def list_disabled_dates() -> tuple[dict, int]:
    """Dates between ``from`` and ``to`` whose week already exists."""
    first = date_arg(request.args, "from")
    last = date_arg(request.args, "to")
    if first is None or last is None:
        raise ValidationError("Both 'from' and 'to' are required.")
    if last < first or last - first > timedelta(days=MAX_PICKER_DAYS):
        raise ValidationError(f"Use a range of at most {MAX_PICKER_DAYS} days, 'from' before 'to'.")
    days = disabled_dates(first, last, _load_periods(), display_tz())
    return {"dates": [d.isoformat() for d in days]}, 200


@weeks_bp.route("/weeks/<week_id>", methods=["GET"])
def get_week(week_id: str) -> tuple[dict, int]:
    period = require_data(get_api().get_week(week_id), "Week not found.")
    return _dump_period(period), 200


@weeks_bp.route("/weeks/<week_id>", methods=["DELETE"])
def delete_week(week_id: str) -> tuple[dict, int]:
    """Permanently delete a week."""
    envelope = get_api().delete_week(week_id)
    return {"message": envelope.message or "Week deleted."}, 200


@weeks_bp.route("/weeks/<week_id>/services", methods=["GET"])
def get_week_services(week_id: str) -> tuple[dict, int]:
    """Service assignments of a week and the ministers available for them.

    A week without saved assignments offers the default service slots.
    """
    api = get_api()
    week_envelope, ministers_envelope = fetch_all(
        lambda: api.get_week(week_id),
        lambda: api.get_people_by_type(PersonType.MINISTER.value),
    )
    period = require_data(week_envelope, "Week not found.")
    ministers = [m for m in ministers_envelope.data or [] if not m.deleted]
    names = {m.id: m.full_name for m in ministers}

    services = period.services or list(DEFAULT_SERVICES)
    rows = []
    for service in ServiceAssignmentSchema(many=True).dump(services):
        sic = service["sic"]
        service["minister_name"] = names.get(sic, "Unknown") if sic else "Unassigned"
        rows.append(service)
    return {
        "week": _dump_period(period),
        "services": rows,
        "ministers": [{"id": m.id, "name": m.full_name} for m in ministers],
    }, 200


@weeks_bp.route("/weeks/<week_id>/services", methods=["PUT"])
def update_week_services(week_id: str) -> tuple[dict, int]:
    """Replace the service assignments of a week wholesale."""
    data = ServicesInputSchema().load(json_object())
    envelope = get_api().update_week_services(week_id, data["services"])
    response = {"message": "Services updated successfully!"}
    if envelope.has_data:
        response["week"] = _dump_period(envelope.data)
    return response, 200
