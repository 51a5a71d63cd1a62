"""Tests for application settings and the config manager."""

import pytest

from thinkchat.modules.config.config_manager import (
    DEFAULT_TAGS,
    AppSettings,
    ConfigManager,
    resolve_env_var,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("RESPONDER_URL", "RESPONDER_API_KEY", "STORAGE_BACKEND", "DEFAULT_TAGS", "LOG_PREVIEWS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = AppSettings(_env_file=None)
    assert settings.storage_backend == "memory"
    assert settings.responder_url is None
    assert settings.responder_timeout == 60.0
    assert settings.default_tag_list == DEFAULT_TAGS
    assert settings.chat_history_db_url == "duckdb:///data/chat_history.db"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RESPONDER_URL", "https://example.test")
    monkeypatch.setenv("STORAGE_BACKEND", "sql")
    monkeypatch.setenv("DEFAULT_TAGS", "Alpha, Beta,,Gamma ")

    settings = AppSettings(_env_file=None)

    assert settings.responder_url == "https://example.test"
    assert settings.storage_backend == "sql"
    assert settings.default_tag_list == ["Alpha", "Beta", "Gamma"]


def test_log_level_normalized():
    assert AppSettings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_is_development():
    assert AppSettings(_env_file=None, environment="development").is_development
    assert AppSettings(_env_file=None, debug_mode=True).is_development
    assert not AppSettings(_env_file=None, environment="production").is_development


def test_resolve_env_var(monkeypatch):
    monkeypatch.setenv("MY_KEY", "secret")
    assert resolve_env_var("${MY_KEY}") == "secret"
    assert resolve_env_var("${MISSING_KEY_XYZ}") is None
    assert resolve_env_var("literal") == "literal"
    assert resolve_env_var(None) is None


def test_config_manager_resolves_api_key(monkeypatch):
    monkeypatch.setenv("TOKEN_SOURCE", "abc123")
    cm = ConfigManager(AppSettings(_env_file=None, responder_api_key="${TOKEN_SOURCE}"))
    assert cm.responder_api_key == "abc123"


def test_config_manager_caches_and_reloads(monkeypatch):
    cm = ConfigManager()
    first = cm.app_settings
    assert cm.app_settings is first

    monkeypatch.setenv("RESPONDER_URL", "https://reloaded.test")
    assert cm.reload().responder_url == "https://reloaded.test"
