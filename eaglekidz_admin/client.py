"""HTTP client for the EagleKidz backend.

Every backend endpoint answers with the same ``{message, status, data}``
envelope. :class:`ApiClient` sends JSON requests against one base URL,
decodes that envelope and turns failures into :class:`ApiError`:

* the request never completed: a generic "unable to reach" message;
* non-2xx with a decodable envelope: the backend's own ``message``;
* non-2xx with any other body: ``"HTTP error! status: <code>"``.

There are no retries, no caching and, unless configured, no timeout.
A failed call surfaces immediately to the caller.

The client is an ordinary object. The application factory builds one
from configuration and keeps it in ``app.extensions``; tests pass their
own, usually wrapping an ``httpx.MockTransport``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

import httpx
from marshmallow import Schema
from marshmallow import ValidationError as SchemaError

from .errors import ApiError, NotFoundError
from .models import Envelope, ServiceAssignment, SummaryResult
from .schemas import (
    EnvelopeSchema,
    PersonSchema,
    ReviewSchema,
    ServiceAssignmentSchema,
    SummaryResponseSchema,
    WeekPeriodSchema,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "http://localhost:8080"
API_PREFIX = "/api/v1"
TRANSPORT_ERROR_MESSAGE = "Unable to reach the EagleKidz backend. Please try again."
SUMMARY_ERROR_MESSAGE = "Failed to generate AI summary. Please try again."


def _error_message(response: httpx.Response) -> str:
    """Return the envelope message of a failed response, or a generic one."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return f"HTTP error! status: {response.status_code}"


def _isoformat(value: datetime | str) -> str:
    return value.isoformat() if isinstance(value, datetime) else value


class ApiClient:
    """Thin wrapper around ``httpx.Client`` for the EagleKidz API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Core request handling
    # ------------------------------------------------------------------

    def _send(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        merged = {"Content-Type": "application/json", **(headers or {})}
        try:
            response = self._http.request(method, path, json=json, headers=merged)
        except httpx.RequestError as exc:
            logger.warning("%s %s did not complete: %s", method, path, exc)
            raise ApiError(TRANSPORT_ERROR_MESSAGE) from exc
        if not response.is_success:
            message = _error_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise ApiError(message, response.status_code)
        logger.debug("%s %s returned %s", method, path, response.status_code)
        return response

    def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        schema: Optional[Schema] = None,
        many: bool = False,
    ) -> Envelope:
        """Send a request and return the decoded envelope.

        When ``schema`` is given and the envelope carries ``data``, the
        data is loaded with it (``many`` for list endpoints). Callers
        must still check :attr:`Envelope.has_data` before use.
        """
        response = self._send(path, method=method, json=json, headers=headers)
        if not response.content:
            return Envelope(message="", status="")
        try:
            envelope = EnvelopeSchema().load(response.json())
            if schema is not None and envelope.data is not None:
                envelope = Envelope(
                    message=envelope.message,
                    status=envelope.status,
                    data=schema.load(envelope.data, many=many),
                )
        except (ValueError, SchemaError) as exc:
            logger.error("%s %s returned an unreadable body: %s", method, path, exc)
            raise ApiError("Unexpected response from the EagleKidz backend.", response.status_code) from exc
        return envelope

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_health(self) -> Envelope:
        return self.request("/health")

    def get_welcome(self) -> Envelope:
        return self.request("/api")

    def get_api_status(self) -> Envelope:
        return self.request(f"{API_PREFIX}/status")

    # ------------------------------------------------------------------
    # Weeks
    # ------------------------------------------------------------------

    def create_week(self, start_time: datetime | str, end_time: datetime | str) -> Envelope:
        payload = {"start_time": _isoformat(start_time), "end_time": _isoformat(end_time)}
        return self.request(f"{API_PREFIX}/weeks", "POST", json=payload, schema=WeekPeriodSchema())

    def get_all_weeks(self) -> Envelope:
        return self.request(f"{API_PREFIX}/weeks", schema=WeekPeriodSchema(), many=True)

    def get_week(self, week_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/weeks/{week_id}", schema=WeekPeriodSchema())

    def delete_week(self, week_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/weeks/{week_id}", "DELETE")

    def update_week_services(self, week_id: str, services: Iterable[ServiceAssignment]) -> Envelope:
        payload = {"services": ServiceAssignmentSchema(many=True).dump(list(services))}
        return self.request(f"{API_PREFIX}/weeks/{week_id}/services", "PUT", json=payload, schema=WeekPeriodSchema())

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def create_review(self, payload: Mapping[str, str]) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews", "POST", json=dict(payload), schema=ReviewSchema())

    def get_all_reviews(self) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews", schema=ReviewSchema(), many=True)

    def get_review(self, review_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews/{review_id}", schema=ReviewSchema())

    def get_reviews_by_week(self, week_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/weeks/{week_id}/reviews", schema=ReviewSchema(), many=True)

    def update_review(self, review_id: str, payload: Mapping[str, str]) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews/{review_id}", "PUT", json=dict(payload), schema=ReviewSchema())

    def delete_review(self, review_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews/{review_id}", "DELETE", schema=ReviewSchema())

    def get_deleted_reviews_by_week(self, week_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/weeks/{week_id}/deleted-reviews", schema=ReviewSchema(), many=True)

    def hard_delete_review(self, review_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews/{review_id}/permanent", "DELETE")

    def restore_review(self, review_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/reviews/{review_id}/restore", "PUT", schema=ReviewSchema())

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------

    def create_people(self, payload: Mapping[str, Any]) -> Envelope:
        return self.request(f"{API_PREFIX}/people", "POST", json=dict(payload), schema=PersonSchema())

    def get_all_people(self) -> Envelope:
        return self.request(f"{API_PREFIX}/people", schema=PersonSchema(), many=True)

    def get_people_by_type(self, person_type: str) -> Envelope:
        return self.request(f"{API_PREFIX}/people/type/{person_type}", schema=PersonSchema(), many=True)

    def get_people(self, person_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/people/{person_id}", schema=PersonSchema())

    def update_people(self, person_id: str, payload: Mapping[str, Any]) -> Envelope:
        return self.request(f"{API_PREFIX}/people/{person_id}", "PUT", json=dict(payload), schema=PersonSchema())

    def delete_people(self, person_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/people/{person_id}", "DELETE", schema=PersonSchema())

    def get_deleted_people(self) -> Envelope:
        return self.request(f"{API_PREFIX}/people/deleted", schema=PersonSchema(), many=True)

    def hard_delete_people(self, person_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/people/{person_id}/permanent", "DELETE")

    def restore_people(self, person_id: str) -> Envelope:
        return self.request(f"{API_PREFIX}/people/{person_id}/restore", "PUT", schema=PersonSchema())

    # ------------------------------------------------------------------
    # AI summary
    # ------------------------------------------------------------------

    def generate_summary(self, what_went_well: str, can_improve: str, action_plans: str = "") -> SummaryResult:
        """Ask the backend to draft a review summary.

        This endpoint does not use the standard envelope; it answers
        ``{success, data: {summary}}``.
        """
        payload = {
            "what_went_well": what_went_well,
            "can_improve": can_improve,
            "action_plans": action_plans,
        }
        response = self._send(f"{API_PREFIX}/ai/summarize", "POST", json=payload)
        try:
            result = SummaryResponseSchema().load(response.json())
        except (ValueError, SchemaError) as exc:
            raise ApiError(SUMMARY_ERROR_MESSAGE, response.status_code) from exc
        if not result.success or not result.summary:
            raise ApiError(SUMMARY_ERROR_MESSAGE, response.status_code)
        return result


def require_data(envelope: Envelope, message: str) -> Any:
    """Return ``envelope.data`` or raise ``NotFoundError(message)``."""
    if not envelope.has_data:
        raise NotFoundError(message)
    return envelope.data


def fetch_all(*calls: Callable[[], T]) -> list[T]:
    """Run independent backend calls concurrently and join them.

    Results come back in call order. If any call raises, the whole
    batch fails with that exception once every call has finished.
    """
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
    return [future.result() for future in futures]
