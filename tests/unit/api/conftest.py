"""Fixtures for API route tests."""

from collections.abc import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coursehub.access import TokenAuthenticator
from coursehub.api.app import register_exception_handlers
from coursehub.api.dependencies import get_settings, get_store
from coursehub.api.routes import analytics, courses, enrollments, users
from coursehub.config import Settings
from coursehub.store import EntityStore, User

API_SECRET = "api-test-secret"


@pytest.fixture
def settings() -> Settings:
    return Settings(env="test", db_path=":memory:", jwt_secret=API_SECRET)


@pytest.fixture
def app(store: EntityStore, settings: Settings) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    app = FastAPI()

    def override_get_store():
        yield store

    app.dependency_overrides[get_store] = override_get_store
    app.dependency_overrides[get_settings] = lambda: settings

    register_exception_handlers(app, settings)

    app.include_router(courses.router)
    app.include_router(enrollments.router)
    app.include_router(analytics.router)
    app.include_router(users.router)

    return app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header for a user."""
    authenticator = TokenAuthenticator(secret=API_SECRET)

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {authenticator.issue(user.id, user.role)}"}

    return _headers
