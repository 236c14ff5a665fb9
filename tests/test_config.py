"""Tests for settings loading and startup environment validation."""

from __future__ import annotations

import logging

import pytest
from structlog.testing import capture_logs

from rink_reports.config import Settings, get_settings, settings
from rink_reports.logging import _normalize_log_level, logger
from rink_reports.validate_env import validate_env


@pytest.fixture(autouse=True)
def _clear_caches():
    validate_env.cache_clear()
    get_settings.cache_clear()
    yield
    validate_env.cache_clear()
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.reports.divisions == ["Gold", "Silver", "Bronze"]
        assert settings.reports.incremental_reconstruction is True
        assert settings.highlights.max_highlights == 6
        assert settings.highlights.per_rule_cap == 3
        assert settings.game_clock.period_length_minutes == 20

    def test_division_override(self, monkeypatch):
        monkeypatch.setenv("REPORT_DIVISIONS", " Gold, Platinum ,,")
        assert Settings().reports.divisions == ["Gold", "Platinum"]

    def test_empty_division_override_is_ignored(self, monkeypatch):
        monkeypatch.setenv("REPORT_DIVISIONS", "")
        assert Settings().reports.divisions == ["Gold", "Silver", "Bronze"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidateEnv:
    def test_development_needs_nothing(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        validate_env()

    def test_unknown_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "qa")
        with pytest.raises(RuntimeError, match="ENVIRONMENT must be one of"):
            validate_env()

    def test_production_requires_broker(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://db.internal/rink")
        monkeypatch.delenv("REDIS_URL", raising=False)
        with pytest.raises(RuntimeError, match="REDIS_URL is required"):
            validate_env()

    def test_production_rejects_sqlite(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
        monkeypatch.setenv("REDIS_URL", "redis://cache.internal:6379/3")
        with pytest.raises(RuntimeError, match="SQLite"):
            validate_env()

    def test_production_rejects_localhost(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://db.internal/rink")
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/3")
        with pytest.raises(RuntimeError, match="localhost"):
            validate_env()

    def test_production_accepts_remote_services(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://db.internal/rink")
        monkeypatch.setenv("REDIS_URL", "redis://cache.internal:6379/3")
        validate_env()


class TestLogLevel:
    def test_explicit_level(self):
        assert _normalize_log_level("warning", "development") == logging.WARNING

    def test_environment_default(self):
        assert _normalize_log_level(None, "production") == logging.INFO
        assert _normalize_log_level(None, "development") == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        assert _normalize_log_level("chatty", "development") == logging.INFO


class TestLogger:
    def test_entries_carry_service_identity(self):
        with capture_logs() as logs:
            logger.info("report_upserted", division="Gold")

        assert logs[0]["event"] == "report_upserted"
        assert logs[0]["log_level"] == "info"
        assert logs[0]["service"] == "rink-reports"
        assert logs[0]["environment"] == settings.environment
        assert logs[0]["division"] == "Gold"
