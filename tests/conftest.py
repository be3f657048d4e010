"""Pytest fixtures: isolated SQLite database, Flask test client, auth helpers."""

import os
import tempfile

# Configuration is read at import time, so point it at a scratch database
# before anything from pilotlog is imported.
_DB_DIR = tempfile.mkdtemp(prefix="pilotlog-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["API_KEY"] = ""
os.environ["AVIATIONSTACK_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "admin@company.com"

import pytest

from pilotlog.app import create_app
from pilotlog.models import Base, engine
from pilotlog.services.flight_info import flight_info_service


@pytest.fixture(scope="session")
def app():
    """Application instance shared by the whole session."""
    application = create_app()
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def clean_database():
    """Empty every table and the lookup cache before each test."""
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    flight_info_service._cache.clear()
    yield


def _register_pilot(client, email="jane@example.com", username="jane", **overrides):
    """Register a pilot through the API and return the response JSON."""
    payload = {
        "email": email,
        "password": "secret123",
        "username": username,
        "firstName": "Jane",
        "lastName": "Doe",
        "licenseNumber": "CPL-001",
        "licenseType": "CPL",
    }
    payload.update(overrides)
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


@pytest.fixture
def pilot(client):
    """A registered pilot: {'token', 'pilot', 'headers'}."""
    body = _register_pilot(client)
    body["headers"] = {"Authorization": f"Bearer {body['token']}"}
    return body


@pytest.fixture
def admin(client):
    """A registered admin account (email listed in ADMIN_EMAILS)."""
    body = _register_pilot(client, email="admin@company.com", username="admin")
    body["headers"] = {"Authorization": f"Bearer {body['token']}"}
    return body


@pytest.fixture
def register(client):
    """Callable registering extra pilots: register(email=..., username=...)."""
    def _register(**kwargs):
        return _register_pilot(client, **kwargs)
    return _register
