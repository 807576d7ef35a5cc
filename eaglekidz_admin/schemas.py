"""
Serialization schemas using Marshmallow for the EagleKidz admin tool.

Two directions are covered. *Wire* schemas load the JSON the backend
returns into the frozen dataclasses of :mod:`eaglekidz_admin.models`
and dump those dataclasses back to JSON for the browser. *Input*
schemas validate and normalise what the browser submits (trimming text
fields, checking required values) before it is forwarded to the
backend.

Unknown keys coming from the backend are ignored so that new backend
fields never break the pages.
"""

from __future__ import annotations

from datetime import datetime

from dateutil.parser import isoparse  # type: ignore
from marshmallow import EXCLUDE, Schema, fields, post_load, pre_load, validate

from .models import Envelope, Person, PersonType, Review, ServiceAssignment, SummaryResult, WeekPeriod


class IsoDateTime(fields.Field):
    """ISO 8601 instant, parsed with dateutil.

    The backend emits RFC 3339 timestamps with up to nanosecond
    precision, which ``datetime.fromisoformat`` rejects on older
    interpreters.
    """

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return value.isoformat()

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, datetime):
            return value
        try:
            return isoparse(value)
        except (TypeError, ValueError) as exc:
            raise self.make_error("invalid") from exc

    default_error_messages = {"invalid": "Not a valid ISO 8601 datetime."}


class _WireSchema(Schema):
    """Base for schemas that load backend payloads into dataclasses."""

    __model__: type = dict

    class Meta:
        unknown = EXCLUDE

    @post_load
    def make_object(self, data, **kwargs):
        return self.__model__(**data)


class ServiceAssignmentSchema(_WireSchema):
    """Schema for ``ServiceAssignment`` objects."""

    __model__ = ServiceAssignment

    name = fields.String(required=True)
    time = fields.String(required=True)
    sic = fields.String(load_default="", allow_none=True)

    @pre_load
    def blank_sic(self, data, **kwargs):
        if isinstance(data, dict) and data.get("sic") is None:
            data = {**data, "sic": ""}
        return data


class WeekPeriodSchema(_WireSchema):
    """Schema for ``WeekPeriod`` objects."""

    __model__ = WeekPeriod

    id = fields.String(required=True)
    start_time = IsoDateTime(required=True)
    end_time = IsoDateTime(required=True)
    services = fields.List(fields.Nested(ServiceAssignmentSchema), load_default=list, allow_none=True)
    created_at = IsoDateTime(load_default=None, allow_none=True)
    updated_at = IsoDateTime(load_default=None, allow_none=True)

    @post_load
    def make_object(self, data, **kwargs):
        # Go encodes an empty slice as null
        data["services"] = data.get("services") or []
        return WeekPeriod(**data)


class ReviewSchema(_WireSchema):
    """Schema for ``Review`` objects."""

    __model__ = Review

    id = fields.String(required=True)
    week_id = fields.String(required=True)
    what_went_well = fields.String(load_default="")
    can_improve = fields.String(load_default="")
    action_plans = fields.String(load_default="")
    summary = fields.String(load_default="")
    deleted = fields.Boolean(load_default=False)
    created_at = IsoDateTime(load_default=None, allow_none=True)
    updated_at = IsoDateTime(load_default=None, allow_none=True)


class PersonSchema(_WireSchema):
    """Schema for ``Person`` objects (ministers and children)."""

    __model__ = Person

    id = fields.String(required=True)
    first_name = fields.String(load_default="")
    last_name = fields.String(load_default="")
    type = fields.String(required=True)
    age_group = fields.List(fields.String(), load_default=list, allow_none=True)
    roles = fields.List(fields.String(), load_default=list, allow_none=True)
    phone = fields.String(load_default="")
    email = fields.String(load_default="")
    notes = fields.String(load_default="")
    deleted = fields.Boolean(load_default=False)
    created_at = IsoDateTime(load_default=None, allow_none=True)
    updated_at = IsoDateTime(load_default=None, allow_none=True)

    full_name = fields.String(dump_only=True)

    @post_load
    def make_object(self, data, **kwargs):
        data["age_group"] = data.get("age_group") or []
        data["roles"] = data.get("roles") or []
        return Person(**data)


class EnvelopeSchema(Schema):
    """The ``{message, status, data}`` wrapper of every backend response.

    ``data`` is kept raw here; the client decodes it with the entity
    schema that matches the endpoint.
    """

    class Meta:
        unknown = EXCLUDE

    message = fields.String(load_default="")
    status = fields.String(load_default="")
    data = fields.Raw(load_default=None, allow_none=True)

    @post_load
    def make_object(self, data, **kwargs):
        return Envelope(**data)


class SummaryResponseSchema(Schema):
    """Response of ``POST /api/v1/ai/summarize``: ``{success, data: {summary}}``."""

    class Meta:
        unknown = EXCLUDE

    success = fields.Boolean(load_default=False)
    data = fields.Dict(load_default=None, allow_none=True)

    @post_load
    def make_object(self, data, **kwargs):
        payload = data.get("data") or {}
        return SummaryResult(success=data["success"], summary=payload.get("summary") or None)


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------


class _TrimmedInputSchema(Schema):
    """Base for browser input; strips surrounding whitespace from strings."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def trim_strings(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        return {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}


class ReviewInputSchema(_TrimmedInputSchema):
    """Fields of a review form.

    All four sections are required on creation; load with
    ``partial=True`` for updates, where only the submitted sections are
    forwarded.
    """

    week_id = fields.String(required=True, validate=validate.Length(min=1))
    what_went_well = fields.String(required=True, validate=validate.Length(min=1))
    can_improve = fields.String(required=True, validate=validate.Length(min=1))
    action_plans = fields.String(required=True, validate=validate.Length(min=1))
    summary = fields.String(required=True, validate=validate.Length(min=1))


class SummaryInputSchema(_TrimmedInputSchema):
    """Sections sent to the AI summary call."""

    what_went_well = fields.String(required=True, validate=validate.Length(min=1))
    can_improve = fields.String(required=True, validate=validate.Length(min=1))
    action_plans = fields.String(load_default="")


def _email_or_blank(value: str) -> None:
    # An empty address clears the field.
    if value:
        validate.Email()(value)


class PersonInputSchema(_TrimmedInputSchema):
    """Fields of the minister and children roster forms."""

    first_name = fields.String(required=True, validate=validate.Length(min=1))
    last_name = fields.String(required=True, validate=validate.Length(min=1))
    type = fields.String(validate=validate.OneOf([t.value for t in PersonType]))
    age_group = fields.List(fields.String(), load_default=list)
    roles = fields.List(fields.String(), load_default=list)
    phone = fields.String(load_default="")
    email = fields.String(load_default="", validate=_email_or_blank)
    notes = fields.String(load_default="")


class ServicesInputSchema(Schema):
    """The wholesale list of service assignments of a week."""

    class Meta:
        unknown = EXCLUDE

    services = fields.List(fields.Nested(ServiceAssignmentSchema), required=True)
