"""Shared fixtures for the Zenvoyer API tests."""

import pytest
from fastapi.testclient import TestClient

from zenvoyer.config import Settings
from zenvoyer.main import create_app
from zenvoyer.schemas.records import UserRole
from zenvoyer.services.auth import create_access_token
from zenvoyer.services.store import DataStore


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the real upload dir."""
    return Settings(
        jwt_secret="test-secret",
        upload_dir=str(tmp_path / "uploads"),
        email_provider="mock",
        email_from="noreply@zenvoyer.com",
        response_cache_sweep_interval=3600,
    )


@pytest.fixture
def store():
    return DataStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(settings):
    """Build Authorization headers for a user id and role."""
    def make(user_id: str = "user-1", role: UserRole = UserRole.USER, email: str = "owner@example.com") -> dict:
        token = create_access_token(user_id, email, role, settings=settings)
        return {"Authorization": f"Bearer {token}"}
    return make
