"""
Routes for the minister and children rosters.

Both rosters behave the same way and differ only in the ``type`` of
the people they hold, so one blueprint serves ``/people/ministers`` and
``/people/children``. Each roster page shows its active people
(searchable by name or phone, filterable by age group and role) next
to the deleted ones, which can be restored or permanently deleted.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request

from .. import get_api, json_object
from ..client import fetch_all, require_data
from ..errors import ApiError, NotFoundError, ValidationError
from ..models import Envelope, PersonType
from ..schemas import PersonInputSchema, PersonSchema
from ..services import PeopleFilter, SoftDeleteGateway, SoftDeleteLedger, filter_people, tag_facets

logger = logging.getLogger(__name__)

people_bp = Blueprint("people", __name__)

ROSTERS = {
    "ministers": PersonType.MINISTER,
    "children": PersonType.CHILDREN,
}

LABELS = {
    PersonType.MINISTER: "Minister",
    PersonType.CHILDREN: "Child",
}


def _roster(kind: str) -> PersonType:
    try:
        return ROSTERS[kind]
    except KeyError:
        raise NotFoundError(f"Unknown roster '{kind}'. Use 'ministers' or 'children'.")


def _load_roster(person_type: PersonType, strict: bool = False) -> tuple[list, list]:
    """Active and deleted people of one type, fetched together.

    The backend lists deleted people of every type in one call; only
    this roster's type is kept. Unless ``strict``, a failure there is
    treated as "nothing deleted" so the active roster still shows.
    """
    api = get_api()

    def deleted_or_empty() -> Envelope:
        try:
            return api.get_deleted_people()
        except ApiError as exc:
            logger.warning("Deleted %s unavailable: %s", person_type.value, exc.message)
            return Envelope(message="", status="")

    active_envelope, deleted_envelope = fetch_all(
        lambda: api.get_people_by_type(person_type.value),
        api.get_deleted_people if strict else deleted_or_empty,
    )
    active = [p for p in active_envelope.data or [] if not p.deleted]
    deleted = [p for p in deleted_envelope.data or [] if p.type == person_type.value]
    return active, deleted


def _people_ledger(person_type: PersonType) -> SoftDeleteLedger:
    api = get_api()
    active, deleted = _load_roster(person_type, strict=True)
    gateway = SoftDeleteGateway(
        soft_delete=api.delete_people,
        restore=api.restore_people,
        hard_delete=api.hard_delete_people,
        reload=lambda: _load_roster(person_type, strict=True),
    )
    return SoftDeleteLedger(active, deleted, gateway)


def _partitions(ledger: SoftDeleteLedger, message: str) -> dict:
    schema = PersonSchema(many=True)
    return {
        "message": message,
        "active": schema.dump(ledger.active),
        "deleted": schema.dump(ledger.deleted),
    }


@people_bp.route("/people/<kind>", methods=["GET"])
def list_roster(kind: str) -> tuple[dict, int]:
    """Return a roster filtered by ``search``, ``age_group`` and ``role``.

    The deleted list is returned unfiltered so that nothing deleted is
    hidden from the restore panel.
    """
    person_type = _roster(kind)
    criteria = PeopleFilter.from_args(request.args)
    active, deleted = _load_roster(person_type)
    filtered = filter_people(active, criteria)
    schema = PersonSchema(many=True)
    return {
        "active": schema.dump(filtered),
        "deleted": schema.dump(deleted),
        "facets": tag_facets(active),
        "total": len(filtered),
    }, 200


@people_bp.route("/people/<kind>", methods=["POST"])
def create_person(kind: str) -> tuple[dict, int]:
    """Add a person to a roster. ``first_name`` and ``last_name`` are required."""
    person_type = _roster(kind)
    data = PersonInputSchema().load(json_object())
    data["type"] = person_type.value
    person = require_data(
        get_api().create_people(data),
        f"Failed to save {LABELS[person_type].lower()}.",
    )
    return {
        "message": f"{LABELS[person_type]} created successfully",
        "person": PersonSchema().dump(person),
    }, 201


@people_bp.route("/people/<kind>/<person_id>", methods=["PUT"])
def update_person(kind: str, person_id: str) -> tuple[dict, int]:
    """Update the submitted fields of a person; values are trimmed."""
    person_type = _roster(kind)
    data = PersonInputSchema(partial=True).load(json_object())
    # A person never changes roster.
    data.pop("type", None)
    if not data:
        raise ValidationError("Nothing to update.")
    api = get_api()
    not_found = f"{LABELS[person_type]} not found."
    current = require_data(api.get_people(person_id), not_found)
    if current.type != person_type.value:
        raise NotFoundError(not_found)
    person = require_data(api.update_people(person_id, data), not_found)
    return {
        "message": f"{LABELS[person_type]} updated successfully",
        "person": PersonSchema().dump(person),
    }, 200


@people_bp.route("/people/<kind>/<person_id>", methods=["DELETE"])
def delete_person(kind: str, person_id: str) -> tuple[dict, int]:
    person_type = _roster(kind)
    ledger = _people_ledger(person_type)
    ledger.delete(person_id)
    return _partitions(ledger, f"{LABELS[person_type]} deleted successfully"), 200


@people_bp.route("/people/<kind>/<person_id>/restore", methods=["PUT"])
def restore_person(kind: str, person_id: str) -> tuple[dict, int]:
    person_type = _roster(kind)
    ledger = _people_ledger(person_type)
    ledger.restore(person_id)
    return _partitions(ledger, f"{LABELS[person_type]} restored successfully"), 200


@people_bp.route("/people/<kind>/<person_id>/permanent", methods=["DELETE"])
def hard_delete_person(kind: str, person_id: str) -> tuple[dict, int]:
    person_type = _roster(kind)
    ledger = _people_ledger(person_type)
    ledger.hard_delete(person_id)
    return _partitions(ledger, f"{LABELS[person_type]} permanently deleted"), 200
