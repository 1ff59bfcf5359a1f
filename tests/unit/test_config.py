"""Unit tests for runtime configuration."""

import os
from unittest.mock import patch

import pytest

from pydantic import ValidationError

from coursehub.config import DEFAULT_JWT_SECRET, ConfigError, Settings, load_settings


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings."""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        settings = load_settings()

        assert settings.env == "development"
        assert settings.db_path == "coursehub.db"
        assert settings.store_timeout == 5.0
        assert settings.jwt_secret == DEFAULT_JWT_SECRET
        assert settings.jwt_algorithm == "HS256"
        assert settings.trend_window_days == 30
        assert settings.cors_origins == ["*"]
        assert not settings.is_production

    @patch.dict(
        os.environ,
        {
            "COURSEHUB_DB_PATH": "/tmp/hub.db",
            "COURSEHUB_STORE_TIMEOUT": "0.5",
            "COURSEHUB_JWT_EXPIRES_MINUTES": "15",
            "COURSEHUB_TREND_WINDOW_DAYS": "7",
            "COURSEHUB_CORS_ORIGINS": "https://a.example, https://b.example,",
        },
        clear=True,
    )
    def test_reads_environment(self) -> None:
        settings = load_settings()

        assert settings.db_path == "/tmp/hub.db"
        assert settings.store_timeout == 0.5
        assert settings.jwt_expires_minutes == 15
        assert settings.trend_window_days == 7
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    @patch.dict(os.environ, {"COURSEHUB_STORE_TIMEOUT": "soon"}, clear=True)
    def test_non_numeric_timeout_raises(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert "COURSEHUB_STORE_TIMEOUT" in str(exc_info.value)

    @patch.dict(os.environ, {"COURSEHUB_ENV": "production"}, clear=True)
    def test_production_requires_secret(self) -> None:
        with pytest.raises(ConfigError):
            load_settings()

    @patch.dict(
        os.environ,
        {"COURSEHUB_ENV": "production", "COURSEHUB_JWT_SECRET": "s3cret"},
        clear=True,
    )
    def test_production_with_secret(self) -> None:
        assert load_settings().is_production

    @patch.dict(
        os.environ,
        {
            "COURSEHUB_STORE_TIMEOUT": "",
            "COURSEHUB_CORS_ORIGINS": "",
            "COURSEHUB_LOG_LEVEL": "DEBUG",
        },
        clear=True,
    )
    def test_blank_and_unrelated_variables_ignored(self) -> None:
        settings = load_settings()

        assert settings.store_timeout == 5.0
        assert settings.cors_origins == ["*"]

    @patch.dict(os.environ, {"COURSEHUB_TREND_WINDOW_DAYS": "0"}, clear=True)
    def test_error_names_variable(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert str(exc_info.value).startswith("COURSEHUB_TREND_WINDOW_DAYS:")


@pytest.mark.unit
class TestSettingsValidation:
    """Constraints enforced when Settings is built directly."""

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            Settings(store_timeout=0)

    def test_rejects_empty_trend_window(self) -> None:
        with pytest.raises(ValidationError):
            Settings(trend_window_days=0)

    def test_production_default_secret_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings(env="production", jwt_secret=DEFAULT_JWT_SECRET)

        assert "COURSEHUB_JWT_SECRET must be set in production" in str(exc_info.value)

    def test_origins_accept_list_and_string(self) -> None:
        assert Settings(cors_origins=["https://a.example"]).cors_origins == ["https://a.example"]
        assert Settings(cors_origins="https://a.example,https://b.example").cors_origins == [
            "https://a.example",
            "https://b.example",
        ]
