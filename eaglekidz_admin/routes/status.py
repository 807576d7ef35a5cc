"""Backend status passthrough.

Lets the home page show whether the EagleKidz backend is reachable and
which version it runs.
"""
from __future__ import annotations

from flask import Blueprint

from .. import get_api
from ..client import fetch_all

status_bp = Blueprint("status", __name__)


@status_bp.route("/backend/status", methods=["GET"])
def backend_status() -> tuple[dict, int]:
    """Query the backend's health, welcome and status endpoints together."""
    api = get_api()
    health, welcome, status = fetch_all(api.get_health, api.get_welcome, api.get_api_status)
    return {
        "health": {"message": health.message, "status": health.status, "data": health.data},
        "welcome": {"message": welcome.message, "status": welcome.status},
        "api": {"message": status.message, "status": status.status, "data": status.data},
    }, 200
