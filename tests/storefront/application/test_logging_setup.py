"""Tests for picking the structlog renderer from the runtime environment."""

import pytest
import structlog
from storefront.utils.logging import current_environment, get_log_level, setup_structlog


@pytest.fixture(autouse=True)
def keep_structlog_config(monkeypatch):
    for name in ("ENV", "ENVIRONMENT", "PROTEAN_ENV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    saved = structlog.get_config()
    yield
    structlog.configure(**saved)


def _renderer():
    return structlog.get_config()["processors"][-1]


class TestEnvironment:
    def test_defaults_to_development(self):
        assert current_environment() == "development"

    def test_env_wins_over_protean_env(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("ENV", "Staging")
        assert current_environment() == "staging"

    def test_log_level_follows_protean_env(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "test")
        assert get_log_level() == "WARNING"


class TestRenderer:
    def test_protean_env_production_renders_json(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        setup_structlog()
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_environment_staging_renders_json(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")
        setup_structlog()
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_development_renders_console(self):
        setup_structlog()
        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)
