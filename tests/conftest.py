"""
Shared pytest fixtures for postboard tests.

Every test gets its own SQLite file under tmp_path and a fresh app built
from an explicit Config, so nothing depends on the process environment.
"""

import os
import sys
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from postboard.api.server import create_app
from postboard.config import Config


TEST_SECRET = "test-secret-not-for-production"


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        AUTH_JWT_SECRET=TEST_SECRET,
        DB_DSN=str(tmp_path / "postboard.sqlite"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(cfg):
    return create_app(cfg)


@pytest.fixture
def make_client(app) -> Callable[[], TestClient]:
    """Factory for independent clients (separate cookie jars) on one app."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


def signup(client: TestClient, name: str = "A", email: str = "a@x.com", password: str = "pw") -> Dict:
    r = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["user"]


@pytest.fixture
def alice(make_client):
    """A signed-up user and a client holding their session cookie."""
    c = make_client()
    user = signup(c, name="Alice", email="alice@example.com", password="alice-pw")
    return user, c


@pytest.fixture
def bob(make_client):
    c = make_client()
    user = signup(c, name="Bob", email="bob@example.com", password="bob-pw")
    return user, c
