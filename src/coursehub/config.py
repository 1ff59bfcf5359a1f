"""Runtime configuration read from COURSEHUB_* environment variables."""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"
ENV_PREFIX = "COURSEHUB_"


class ConfigError(Exception):
    """Raised when configuration is invalid."""


class Settings(BaseSettings):
    """CourseHub settings.

    Attributes:
        env: Deployment environment ("development", "test", "production").
        db_path: SQLite database file, or ":memory:".
        store_timeout: Seconds a store call may wait on a lock before failing.
        jwt_secret: Secret used to verify bearer tokens.
        jwt_algorithm: JWT signing algorithm.
        jwt_expires_minutes: Lifetime of issued tokens.
        trend_window_days: Trailing window for enrollment trends.
        cors_origins: Allowed CORS origins, comma-separated in the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
    )

    env: str = "development"
    db_path: str = "coursehub.db"
    store_timeout: float = Field(default=5.0, gt=0)
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = Field(default=60, ge=1)
    trend_window_days: int = Field(default=30, ge=1)
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        """Accept "https://a, https://b" as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @model_validator(mode="after")
    def require_secret_in_production(self) -> Self:
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError(f"{ENV_PREFIX}JWT_SECRET must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def _describe(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        message = detail["msg"].removeprefix("Value error, ")
        if detail["loc"]:
            parts.append(f"{ENV_PREFIX}{str(detail['loc'][0]).upper()}: {message}")
        else:
            parts.append(message)
    return "; ".join(parts)


def load_settings() -> Settings:
    """Build Settings from the environment.

    Raises:
        ConfigError: If a variable cannot be parsed or the combination is unusable.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(_describe(e)) from e
