"""Shared pytest fixtures and configuration."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from coursehub.access import AuthorizationGate, Principal
from coursehub.analytics import AnalyticsAggregator
from coursehub.catalog import CatalogService
from coursehub.enrollment import EnrollmentService
from coursehub.store import Course, EntityStore, Role, User


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


def principal_for(user: User) -> Principal:
    """Principal presented by a signed-in user."""
    return Principal(user_id=user.id, role=Role(user.role))


def remove_db_files(db_path: str) -> None:
    """Delete a SQLite file with its WAL side files."""
    Path(db_path).unlink(missing_ok=True)
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


# Shared fixtures


@pytest.fixture
def temp_db_path() -> Iterator[str]:
    """A temporary database path, removed afterwards."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    remove_db_files(path)


@pytest.fixture
def store() -> Iterator[EntityStore]:
    """Create an in-memory EntityStore for testing."""
    s = EntityStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def gate(store: EntityStore) -> AuthorizationGate:
    return AuthorizationGate(store)


@pytest.fixture
def enrollments(store: EntityStore, gate: AuthorizationGate) -> EnrollmentService:
    return EnrollmentService(store, gate)


@pytest.fixture
def catalog(
    store: EntityStore, gate: AuthorizationGate, enrollments: EnrollmentService
) -> CatalogService:
    return CatalogService(store, gate, enrollments)


@pytest.fixture
def analytics(store: EntityStore, gate: AuthorizationGate) -> AnalyticsAggregator:
    return AnalyticsAggregator(store, gate)


@pytest.fixture
def instructor(store: EntityStore) -> User:
    return store.create_user(
        name="Ada Lovelace",
        email="ada@example.com",
        role=Role.INSTRUCTOR,
        specialization="Mathematics",
        experience=12,
        bio="Writes programs for engines.",
    )


@pytest.fixture
def other_instructor(store: EntityStore) -> User:
    return store.create_user(name="Alan Turing", email="alan@example.com", role=Role.INSTRUCTOR)


@pytest.fixture
def student(store: EntityStore) -> User:
    return store.create_user(name="Grace Hopper", email="grace@example.com", role=Role.STUDENT)


@pytest.fixture
def other_student(store: EntityStore) -> User:
    return store.create_user(name="Linus Pauling", email="linus@example.com", role=Role.STUDENT)


@pytest.fixture
def instructor_principal(instructor: User) -> Principal:
    return principal_for(instructor)


@pytest.fixture
def other_instructor_principal(other_instructor: User) -> Principal:
    return principal_for(other_instructor)


@pytest.fixture
def student_principal(student: User) -> Principal:
    return principal_for(student)


@pytest.fixture
def other_student_principal(other_student: User) -> Principal:
    return principal_for(other_student)


@pytest.fixture
def course(store: EntityStore, instructor: User) -> Course:
    return store.create_course(
        instructor_id=instructor.id,
        title="Analytical Engines",
        description="Programming the first general-purpose computer.",
        category="Computing",
    )
