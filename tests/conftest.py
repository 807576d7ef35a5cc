"""Shared fixtures: a fake backend, an API client bound to it and the app."""
import httpx
import pytest

from eaglekidz_admin import create_app
from eaglekidz_admin.client import ApiClient

from .helpers import BASE_URL, FakeBackend


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api_client(backend):
    client = ApiClient(BASE_URL, transport=httpx.MockTransport(backend.handle))
    yield client
    client.close()


@pytest.fixture
def app(api_client):
    return create_app({"TESTING": True, "EAGLEKIDZ_TIMEZONE": "UTC"}, api_client=api_client)


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client
