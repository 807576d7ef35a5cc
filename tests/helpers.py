"""Test helpers.

The EagleKidz backend is replaced by :class:`FakeBackend`, an in-memory
imitation of its HTTP API mounted on an ``httpx.MockTransport``. Tests
seed it directly, drive the Flask app through its test client and then
inspect both the JSON the app returned and the requests the backend
received.
"""
from __future__ import annotations

import itertools
import json
import re
import threading
from datetime import datetime, timezone

import httpx


BASE_URL = "http://backend.test"


def iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeBackend:
    """In-memory stand-in for the EagleKidz backend HTTP API."""

    def __init__(self) -> None:
        self.weeks: dict[str, dict] = {}
        self.reviews: dict[str, dict] = {}
        self.people: dict[str, dict] = {}
        self.requests: list[tuple[str, str, object]] = []
        self.failures: dict[tuple[str, str], httpx.Response] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._routes = [
            ("GET", r"/health", self._health),
            ("GET", r"/api", self._welcome),
            ("GET", r"/api/v1/status", self._health),
            ("POST", r"/api/v1/weeks", self._create_week),
            ("GET", r"/api/v1/weeks", self._list_weeks),
            ("GET", r"/api/v1/weeks/(?P<id>[^/]+)", self._get_week),
            ("DELETE", r"/api/v1/weeks/(?P<id>[^/]+)", self._delete_week),
            ("PUT", r"/api/v1/weeks/(?P<id>[^/]+)/services", self._update_services),
            ("GET", r"/api/v1/weeks/(?P<id>[^/]+)/reviews", self._week_reviews),
            ("GET", r"/api/v1/weeks/(?P<id>[^/]+)/deleted-reviews", self._week_deleted_reviews),
            ("POST", r"/api/v1/reviews", self._create_review),
            ("GET", r"/api/v1/reviews", self._list_reviews),
            ("GET", r"/api/v1/reviews/(?P<id>[^/]+)", self._get_review),
            ("PUT", r"/api/v1/reviews/(?P<id>[^/]+)", self._update_review),
            ("DELETE", r"/api/v1/reviews/(?P<id>[^/]+)", self._delete_review),
            ("DELETE", r"/api/v1/reviews/(?P<id>[^/]+)/permanent", self._purge_review),
            ("PUT", r"/api/v1/reviews/(?P<id>[^/]+)/restore", self._restore_review),
            ("POST", r"/api/v1/people", self._create_person),
            ("GET", r"/api/v1/people", self._list_people),
            ("GET", r"/api/v1/people/deleted", self._deleted_people),
            ("GET", r"/api/v1/people/type/(?P<type>[^/]+)", self._people_by_type),
            ("GET", r"/api/v1/people/(?P<id>[^/]+)", self._get_person),
            ("PUT", r"/api/v1/people/(?P<id>[^/]+)", self._update_person),
            ("DELETE", r"/api/v1/people/(?P<id>[^/]+)", self._delete_person),
            ("DELETE", r"/api/v1/people/(?P<id>[^/]+)/permanent", self._purge_person),
            ("PUT", r"/api/v1/people/(?P<id>[^/]+)/restore", self._restore_person),
            ("POST", r"/api/v1/ai/summarize", self._summarize),
        ]

    # -- seeding -----------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def add_week(self, start: datetime, end: datetime, services=None, week_id=None) -> dict:
        week_id = week_id or self._next_id("w")
        self.weeks[week_id] = {
            "id": week_id,
            "start_time": iso(start),
            "end_time": iso(end),
            "services": services,
            "created_at": iso(start),
            "updated_at": iso(start),
        }
        return self.weeks[week_id]

    def add_review(self, week_id: str, created_at: datetime, deleted=False, review_id=None, **fields) -> dict:
        review_id = review_id or self._next_id("r")
        self.reviews[review_id] = {
            "id": review_id,
            "week_id": week_id,
            "what_went_well": fields.get("what_went_well", "Kids engaged well"),
            "can_improve": fields.get("can_improve", "Start on time"),
            "action_plans": fields.get("action_plans", "Brief helpers earlier"),
            "summary": fields.get("summary", "<p>Good week</p>"),
            "deleted": deleted,
            "created_at": iso(created_at),
            "updated_at": iso(created_at),
        }
        return self.reviews[review_id]

    def add_person(self, person_type: str, first_name: str, last_name: str, deleted=False, person_id=None,
                   **fields) -> dict:
        person_id = person_id or self._next_id("p")
        self.people[person_id] = {
            "id": person_id,
            "first_name": first_name,
            "last_name": last_name,
            "type": person_type,
            "age_group": fields.get("age_group"),
            "roles": fields.get("roles"),
            "phone": fields.get("phone", ""),
            "email": fields.get("email", ""),
            "notes": fields.get("notes", ""),
            "deleted": deleted,
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-01T00:00:00Z",
        }
        return self.people[person_id]

    def fail(self, method: str, path: str, status: int, body=None) -> None:
        """Make ``method path`` answer ``status`` with ``body`` (dict as JSON, str as text)."""
        if isinstance(body, dict):
            response = httpx.Response(status, json=body)
        else:
            response = httpx.Response(status, text=body or "")
        self.failures[(method, path)] = response

    def calls(self, method: str, path: str) -> list:
        return [payload for m, p, payload in self.requests if m == method and p == path]

    # -- transport ---------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            payload = json.loads(request.content) if request.content else None
            path = request.url.path
            self.requests.append((request.method, path, payload))
            failure = self.failures.get((request.method, path))
            if failure is not None:
                return failure
            for method, pattern, view in self._routes:
                match = re.fullmatch(pattern, path)
                if method == request.method and match:
                    return view(payload, **match.groupdict())
            return httpx.Response(404, text="404 page not found")

    @staticmethod
    def _ok(data=None, message="OK", status_code=200) -> httpx.Response:
        body = {"message": message, "status": "success"}
        if data is not None:
            body["data"] = data
        return httpx.Response(status_code, json=body)

    @staticmethod
    def _missing(what: str) -> httpx.Response:
        return httpx.Response(404, text=f"{what} not found\n")

    # -- views -------------------------------------------------------------

    def _health(self, payload):
        return self._ok({"timestamp": "2024-03-06T10:00:00Z", "version": "1.0.0"}, "Server is running")

    def _welcome(self, payload):
        return self._ok(message="Welcome to EagleKidz API")

    def _create_week(self, payload):
        for week in self.weeks.values():
            if week["start_time"] == payload["start_time"] and week["end_time"] == payload["end_time"]:
                return httpx.Response(409, json={
                    "message": "Week with the same start and end date already exists",
                    "status": "error",
                })
        week_id = self._next_id("w")
        self.weeks[week_id] = {
            "id": week_id,
            "start_time": payload["start_time"],
            "end_time": payload["end_time"],
            "services": None,
            "created_at": "2024-03-06T10:00:00Z",
            "updated_at": "2024-03-06T10:00:00Z",
        }
        return self._ok(self.weeks[week_id], "Week created successfully", 201)

    def _list_weeks(self, payload):
        return self._ok(list(self.weeks.values()))

    def _get_week(self, payload, id):
        if id not in self.weeks:
            return self._missing("Week")
        return self._ok(self.weeks[id])

    def _delete_week(self, payload, id):
        if self.weeks.pop(id, None) is None:
            return self._missing("Week")
        return self._ok(message="Week deleted successfully")

    def _update_services(self, payload, id):
        if id not in self.weeks:
            return self._missing("Week")
        self.weeks[id]["services"] = payload["services"]
        return self._ok(self.weeks[id], "Week services updated successfully")

    def _week_reviews(self, payload, id):
        return self._ok([r for r in self.reviews.values() if r["week_id"] == id and not r["deleted"]])

    def _week_deleted_reviews(self, payload, id):
        return self._ok([r for r in self.reviews.values() if r["week_id"] == id and r["deleted"]])

    def _create_review(self, payload):
        fields = {k: v for k, v in payload.items() if k != "week_id"}
        review = self.add_review(payload["week_id"], utc(2024, 3, 6, 10), **fields)
        return self._ok(review, "Review created successfully", 201)

    def _list_reviews(self, payload):
        return self._ok(list(self.reviews.values()))

    def _get_review(self, payload, id):
        if id not in self.reviews:
            return self._missing("Review")
        return self._ok(self.reviews[id])

    def _update_review(self, payload, id):
        if id not in self.reviews:
            return self._missing("Review")
        self.reviews[id].update(payload)
        return self._ok(self.reviews[id], "Review updated successfully")

    def _delete_review(self, payload, id):
        if id not in self.reviews:
            return self._missing("Review")
        self.reviews[id]["deleted"] = True
        # The backend answers soft deletes without data.
        return self._ok(message="Review deleted successfully")

    def _purge_review(self, payload, id):
        if self.reviews.pop(id, None) is None:
            return self._missing("Review")
        return self._ok(message="Review permanently deleted")

    def _restore_review(self, payload, id):
        if id not in self.reviews:
            return self._missing("Review")
        self.reviews[id]["deleted"] = False
        return self._ok(self.reviews[id], "Review restored successfully")

    def _create_person(self, payload):
        fields = {k: v for k, v in payload.items() if k not in ("type", "first_name", "last_name")}
        person = self.add_person(payload["type"], payload["first_name"], payload["last_name"], **fields)
        return self._ok(person, "Person created successfully", 201)

    def _list_people(self, payload):
        return self._ok([p for p in self.people.values() if not p["deleted"]])

    def _deleted_people(self, payload):
        return self._ok([p for p in self.people.values() if p["deleted"]])

    def _people_by_type(self, payload, type):
        return self._ok([p for p in self.people.values() if p["type"] == type and not p["deleted"]])

    def _get_person(self, payload, id):
        if id not in self.people:
            return self._missing("Person")
        return self._ok(self.people[id])

    def _update_person(self, payload, id):
        if id not in self.people:
            return self._missing("Person")
        self.people[id].update(payload)
        return self._ok(self.people[id], "Person updated successfully")

    def _delete_person(self, payload, id):
        if id not in self.people:
            return self._missing("Person")
        self.people[id]["deleted"] = True
        return self._ok(self.people[id], "Person deleted successfully")

    def _purge_person(self, payload, id):
        if self.people.pop(id, None) is None:
            return self._missing("Person")
        return self._ok(message="Person permanently deleted")

    def _restore_person(self, payload, id):
        if id not in self.people:
            return self._missing("Person")
        self.people[id]["deleted"] = False
        return self._ok(self.people[id], "Person restored successfully")

    def _summarize(self, payload):
        summary = f"<p>Summary of {payload['what_went_well']}</p>"
        return httpx.Response(200, json={"success": True, "data": {"summary": summary}})
