"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coursehub.access import (
    AuthorizationGate,
    NotAuthenticatedError,
    Principal,
    TokenAuthenticator,
)
from coursehub.analytics import AnalyticsAggregator
from coursehub.catalog import CatalogService
from coursehub.config import Settings
from coursehub.enrollment import EnrollmentService
from coursehub.store import EntityStore

# Global Settings instance (initialized on app creation)
_settings: Settings | None = None


def init_settings(settings: Settings) -> Settings:
    """Initialize the global Settings instance."""
    global _settings  # noqa: PLW0603
    _settings = settings
    return _settings


def get_settings() -> Settings:
    """Dependency that provides the Settings instance."""
    if _settings is None:
        return init_settings(Settings())
    return _settings


SettingsDep = Annotated[Settings, Depends(get_settings)]

# Global EntityStore instance (initialized on app startup)
_store: EntityStore | None = None


def init_store(db_path: str = "coursehub.db", timeout: float = 5.0) -> EntityStore:
    """Initialize the global EntityStore instance."""
    global _store  # noqa: PLW0603
    if _store is not None:
        _store.close()
    _store = EntityStore(db_path, timeout=timeout)
    return _store


def close_store() -> None:
    """Close the global EntityStore instance."""
    global _store  # noqa: PLW0603
    if _store is not None:
        _store.close()
        _store = None


def get_store() -> Generator[EntityStore, None, None]:
    """Dependency that provides the EntityStore instance."""
    if _store is None:
        raise RuntimeError("EntityStore not initialized. Call init_store() first.")
    yield _store


# Type alias for dependency injection
StoreDep = Annotated[EntityStore, Depends(get_store)]


def get_authenticator(settings: SettingsDep) -> TokenAuthenticator:
    """Dependency that provides the bearer-token authenticator."""
    return TokenAuthenticator(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )


AuthenticatorDep = Annotated[TokenAuthenticator, Depends(get_authenticator)]

bearer_scheme = HTTPBearer(auto_error=False)


def require_principal(
    authenticator: AuthenticatorDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """Resolve the bearer credential to a Principal.

    Runs before the request body is validated, so an anonymous call to a
    protected route is rejected with 401 whatever its payload.

    Raises:
        NotAuthenticatedError: If the credential is missing, expired or forged.
    """
    if credentials is None:
        raise NotAuthenticatedError("Authentication required")
    return authenticator.authenticate(credentials.credentials)


RequiredPrincipalDep = Annotated[Principal, Depends(require_principal)]


def get_gate(store: StoreDep) -> AuthorizationGate:
    """Dependency that provides the AuthorizationGate."""
    return AuthorizationGate(store)


GateDep = Annotated[AuthorizationGate, Depends(get_gate)]


def get_enrollment_service(store: StoreDep, gate: GateDep) -> EnrollmentService:
    """Dependency that provides the EnrollmentService."""
    return EnrollmentService(store, gate)


EnrollmentServiceDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]


def get_catalog_service(
    store: StoreDep, gate: GateDep, enrollments: EnrollmentServiceDep
) -> CatalogService:
    """Dependency that provides the CatalogService."""
    return CatalogService(store, gate, enrollments)


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


def get_analytics(store: StoreDep, gate: GateDep, settings: SettingsDep) -> AnalyticsAggregator:
    """Dependency that provides the AnalyticsAggregator."""
    return AnalyticsAggregator(store, gate, trend_window_days=settings.trend_window_days)


AnalyticsDep = Annotated[AnalyticsAggregator, Depends(get_analytics)]
