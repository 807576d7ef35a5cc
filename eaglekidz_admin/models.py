"""
Entity snapshots for the EagleKidz admin tool.

The EagleKidz backend owns every record; this application only ever
holds short-lived copies of what the backend returned for the current
request. The classes below are therefore plain frozen dataclasses, built
by the marshmallow schemas in :mod:`eaglekidz_admin.schemas` and never
mutated in place. A change of state (for example a soft delete) is
represented by a new snapshot, usually the one the backend sends back.

A week (``WeekPeriod``) is a Sunday to Saturday window that groups the
weekly reviews and the service assignments of that week. Ministers and
children share the ``Person`` shape and are told apart by ``type``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class PersonType(enum.Enum):
    """Discriminator of the ``Person`` roster entries."""
    MINISTER = "minister"
    CHILDREN = "children"


@dataclass(frozen=True)
class ServiceAssignment:
    """A service slot of a week and the minister in charge of it.

    ``sic`` ("service in charge") holds the minister id, or an empty
    string while the slot is unassigned.
    """
    name: str
    time: str
    sic: str = ""


# Slots offered when a week has no assignments saved yet.
DEFAULT_SERVICES = (
    ServiceAssignment(name="Voltage", time="11AM"),
    ServiceAssignment(name="Little Eagle, All Star, Super Trooper", time="11AM"),
    ServiceAssignment(name="Little Eagle, All Star, Super Trooper", time="1PM"),
)


@dataclass(frozen=True)
class WeekPeriod:
    """A Sunday 00:00:00 to Saturday 23:59:59 calendar window."""
    id: str
    start_time: datetime
    end_time: datetime
    services: List[ServiceAssignment] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<WeekPeriod {self.id} {self.start_time:%Y-%m-%d}>"


@dataclass(frozen=True)
class Review:
    """A weekly reflection tied to exactly one ``WeekPeriod``.

    ``summary`` may contain rich-text markup produced by the editor or
    by the AI summary call.
    """
    id: str
    week_id: str
    what_went_well: str = ""
    can_improve: str = ""
    action_plans: str = ""
    summary: str = ""
    deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<Review {self.id} week={self.week_id}>"


@dataclass(frozen=True)
class Person:
    """A minister or child on the roster."""
    id: str
    first_name: str
    last_name: str
    type: str
    age_group: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    phone: str = ""
    email: str = ""
    notes: str = ""
    deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Person {self.full_name} ({self.type})>"


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """The uniform ``{message, status, data}`` backend response."""
    message: str
    status: str
    data: Optional[T] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class SummaryResult:
    """Response of the AI summarisation call."""
    success: bool
    summary: Optional[str] = None
