"""
Test configuration and fixtures for the Enhanced Todo backend tests.
Supabase is replaced by an in-memory fake; FastAPI dependencies are overridden.
"""
import pytest
from typing import Generator
from fastapi.testclient import TestClient

from app import app
from config.settings import Settings, get_settings
from services.database import DatabaseService, get_database_service

from fakes import FakeSupabaseClient


@pytest.fixture
def fake_store() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def settings() -> Settings:
    """Settings with no webhook secret and fast polling"""
    return Settings(webhook_secret=None, poll_initial_delay=0.5, poll_interval=0.25, poll_max_attempts=4)


@pytest.fixture
def db(fake_store: FakeSupabaseClient) -> DatabaseService:
    return DatabaseService(client=fake_store)


@pytest.fixture
def override_dependencies(db: DatabaseService, settings: Settings) -> Generator[None, None, None]:
    app.dependency_overrides[get_database_service] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_dependencies) -> TestClient:
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def user(fake_store: FakeSupabaseClient) -> dict:
    return fake_store.seed_user("ada@example.com", phone="15551234567", name="Ada")
