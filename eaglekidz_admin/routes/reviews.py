"""
Routes for weekly reviews.

The browse page lists every active review with year, month, week,
date range and text search filters. The per-week page shows a week's
active reviews next to its deleted ones and moves reviews between the
two lists (soft delete, restore, permanent delete). Creating and
editing reviews, and drafting a summary with the AI helper, live here
too.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request

from .. import display_tz, get_api, json_object, today
from ..client import fetch_all, require_data
from ..errors import ApiError, ValidationError
from ..models import Envelope
from ..schemas import ReviewInputSchema, ReviewSchema, SummaryInputSchema
from ..services import (
    ReviewFilter,
    SoftDeleteGateway,
    SoftDeleteLedger,
    available_months,
    available_periods,
    count_this_month,
    filter_reviews,
    period_facets,
    period_title,
)
from ..util.sanitization import preview

logger = logging.getLogger(__name__)

reviews_bp = Blueprint("reviews", __name__)

REVIEW_SECTIONS = ("what_went_well", "can_improve", "action_plans", "summary")


def _dump_review(review, periods_by_id=None) -> dict:
    data = ReviewSchema().dump(review)
    data["summary_preview"] = preview(review.summary)
    if periods_by_id is not None:
        period = periods_by_id.get(review.week_id)
        data["week_title"] = period_title(period, display_tz()) if period else f"Week {review.week_id}"
    return data


def _load_week_reviews(week_id: str, strict: bool = False) -> tuple[list, list]:
    """Active and deleted reviews of a week, fetched together.

    Unless ``strict``, a failure of the deleted list is treated as
    "nothing deleted" so the page still shows the active reviews.
    Lifecycle moves load strictly: they must not mistake a failed fetch
    for an empty deleted list.
    """
    api = get_api()

    def deleted_or_empty() -> Envelope:
        try:
            return api.get_deleted_reviews_by_week(week_id)
        except ApiError as exc:
            logger.warning("Deleted reviews of week %s unavailable: %s", week_id, exc.message)
            return Envelope(message="", status="")

    active_envelope, deleted_envelope = fetch_all(
        lambda: api.get_reviews_by_week(week_id),
        (lambda: api.get_deleted_reviews_by_week(week_id)) if strict else deleted_or_empty,
    )
    active = [r for r in active_envelope.data or [] if not r.deleted]
    return active, list(deleted_envelope.data or [])


def _review_ledger(week_id: str) -> SoftDeleteLedger:
    api = get_api()
    active, deleted = _load_week_reviews(week_id, strict=True)
    gateway = SoftDeleteGateway(
        soft_delete=api.delete_review,
        restore=api.restore_review,
        hard_delete=api.hard_delete_review,
        reload=lambda: _load_week_reviews(week_id, strict=True),
    )
    return SoftDeleteLedger(active, deleted, gateway)


def _partitions(ledger: SoftDeleteLedger, message: str | None = None) -> dict:
    response = {
        "active": [_dump_review(r) for r in ledger.active],
        "deleted": [_dump_review(r) for r in ledger.deleted],
    }
    if message:
        response["message"] = message
    return response


@reviews_bp.route("/reviews", methods=["GET"])
def browse_reviews() -> tuple[dict, int]:
    """Return active reviews filtered by the browse page criteria.

    Accepts ``search``, ``year``, ``month`` (1-12), ``week_id`` and a
    ``from``/``to`` date range. Reviews are ordered newest first. The
    response also carries the facet values the pickers may offer and the
    overview counts (see ``stats``).
    """
    zone = display_tz()
    api = get_api()
    criteria = ReviewFilter.from_args(request.args)
    reviews_envelope, weeks_envelope = fetch_all(api.get_all_reviews, api.get_all_weeks)
    reviews = [r for r in reviews_envelope.data or [] if not r.deleted]
    periods = weeks_envelope.data or []
    periods_by_id = {p.id: p for p in periods}

    filtered = filter_reviews(reviews, periods_by_id, criteria, zone)
    return {
        "reviews": [_dump_review(r, periods_by_id) for r in filtered],
        "facets": {
            "years": [f.value for f in period_facets(periods, zone)],
            "months": available_months(periods, criteria.year, zone),
            "weeks": [
                {"id": p.id, "title": period_title(p, zone)}
                for p in available_periods(periods, criteria.year, criteria.month, zone)
            ],
        },
        "stats": {
            "total": len(reviews),
            "this_month": count_this_month(reviews, periods_by_id, today(), zone),
            "filtered": len(filtered),
        },
        "total": len(filtered),
    }, 200


@reviews_bp.route("/reviews/summary", methods=["POST"])
def draft_summary() -> tuple[dict, int]:
    """Draft a review summary from the other sections with the AI helper."""
    data = SummaryInputSchema().load(json_object())
    result = get_api().generate_summary(data["what_went_well"], data["can_improve"], data["action_plans"])
    return {"summary": result.summary, "message": "AI summary generated successfully!"}, 200


@reviews_bp.route("/reviews/<review_id>", methods=["GET"])
def get_review(review_id: str) -> tuple[dict, int]:
    review = require_data(get_api().get_review(review_id), "Review not found.")
    return _dump_review(review), 200


@reviews_bp.route("/reviews/<review_id>", methods=["PUT"])
def update_review(review_id: str) -> tuple[dict, int]:
    """Update the submitted sections of a review; values are trimmed."""
    data = ReviewInputSchema(partial=True).load(json_object())
    payload = {key: data[key] for key in REVIEW_SECTIONS if key in data}
    if not payload:
        raise ValidationError("Nothing to update.")
    review = require_data(get_api().update_review(review_id, payload), "Review not found.")
    return {"message": "Review updated successfully!", "review": _dump_review(review)}, 200


@reviews_bp.route("/weeks/<week_id>/reviews", methods=["GET"])
def list_week_reviews(week_id: str) -> tuple[dict, int]:
    """Active and deleted reviews of one week."""
    active, deleted = _load_week_reviews(week_id)
    return {
        "active": [_dump_review(r) for r in active],
        "deleted": [_dump_review(r) for r in deleted],
    }, 200


@reviews_bp.route("/weeks/<week_id>/reviews", methods=["POST"])
def create_review(week_id: str) -> tuple[dict, int]:
    """Create a review for a week. All four sections are required."""
    body = json_object()
    data = ReviewInputSchema().load({**body, "week_id": week_id})
    review = require_data(get_api().create_review(data), "Failed to create review. Please try again.")
    return {"message": "Review created successfully!", "review": _dump_review(review)}, 201


@reviews_bp.route("/weeks/<week_id>/reviews/<review_id>", methods=["DELETE"])
def delete_review(week_id: str, review_id: str) -> tuple[dict, int]:
    """Soft delete a review; it moves to the week's deleted list."""
    ledger = _review_ledger(week_id)
    ledger.delete(review_id)
    return _partitions(ledger, "Review deleted."), 200


@reviews_bp.route("/weeks/<week_id>/reviews/<review_id>/restore", methods=["PUT"])
def restore_review(week_id: str, review_id: str) -> tuple[dict, int]:
    ledger = _review_ledger(week_id)
    ledger.restore(review_id)
    return _partitions(ledger, "Review restored."), 200


@reviews_bp.route("/weeks/<week_id>/reviews/<review_id>/permanent", methods=["DELETE"])
def hard_delete_review(week_id: str, review_id: str) -> tuple[dict, int]:
    """Permanently delete a review from the week's deleted list."""
    ledger = _review_ledger(week_id)
    ledger.hard_delete(review_id)
    return _partitions(ledger, "Review permanently deleted."), 200
