"""Seed script for demo data.

Running this script posts a handful of ministers and children and the
current week to the EagleKidz backend, so that a fresh installation
has something to show. The backend location comes from
``EAGLEKIDZ_API_URL``. It can be executed with
``python -m seed.seed`` from the repository root.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime

from dateutil import tz as dateutil_tz  # type: ignore

from eaglekidz_admin.client import DEFAULT_BASE_URL, ApiClient
from eaglekidz_admin.services import week_window, window_exists

logger = logging.getLogger(__name__)

MINISTERS = [
    {"first_name": "Grace", "last_name": "Tan", "phone": "91234567", "roles": ["SIC", "Host"],
     "age_group": ["Voltage"]},
    {"first_name": "Daniel", "last_name": "Lim", "phone": "92345678", "roles": ["PAW", "Operator"],
     "age_group": ["Little Eagle", "All Star"]},
    {"first_name": "Ruth", "last_name": "Ng", "phone": "93456789", "roles": ["Usher", "Activity/Games"],
     "age_group": ["Super Trooper"]},
]

CHILDREN = [
    {"first_name": "Joel", "last_name": "Tan", "phone": "81234567", "age_group": ["Little Eagle"]},
    {"first_name": "Hannah", "last_name": "Lee", "phone": "82345678", "age_group": ["All Star"]},
    {"first_name": "Caleb", "last_name": "Wong", "phone": "83456789", "age_group": ["Voltage"]},
]


def run_seeds(client: ApiClient | None = None, now: datetime | None = None) -> dict[str, int]:
    """Insert demo people and the current week; return what was created."""
    owns_client = client is None
    if client is None:
        client = ApiClient(os.environ.get("EAGLEKIDZ_API_URL", DEFAULT_BASE_URL))
    zone = dateutil_tz.gettz(os.environ.get("EAGLEKIDZ_TIMEZONE", "UTC"))
    created = {"ministers": 0, "children": 0, "weeks": 0}
    try:
        for person in MINISTERS:
            client.create_people({**person, "type": "minister"})
            created["ministers"] += 1
        for person in CHILDREN:
            client.create_people({**person, "type": "children"})
            created["children"] += 1

        window = week_window(now or datetime.now(zone))
        existing = client.get_all_weeks().data or []
        if window_exists(window, existing, zone):
            logger.info("Week of %s already exists, skipping", window.start.date())
        else:
            client.create_week(**window.to_payload())
            created["weeks"] += 1
    finally:
        if owns_client:
            client.close()
    logger.info("Seed data inserted: %s", created)
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_seeds()
