"""Unit tests for Settings loading."""

from pathlib import Path

import pytest

from levels_search.config import Settings, load_settings
from levels_search.errors import ConfigurationError


pytestmark = pytest.mark.unit


def test_defaults():
    settings = Settings()

    assert settings.store_backend == "sqlite"
    assert settings.db_path == Path("levels.sqlite")
    assert settings.namespace == "levels"
    assert settings.scan_page_size == 256
    assert settings.max_concurrent_scans == 16
    assert settings.sqlite_max_workers == 4
    assert settings.log_json is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LEVELS_SEARCH_STORE_BACKEND", "memory")
    monkeypatch.setenv("LEVELS_SEARCH_NAMESPACE", "  pets ")
    monkeypatch.setenv("LEVELS_SEARCH_MAX_CONCURRENT_SCANS", "4")
    monkeypatch.setenv("LEVELS_SEARCH_LOG_JSON", "true")

    settings = load_settings()

    assert settings.store_backend == "memory"
    assert settings.namespace == "pets"
    assert settings.max_concurrent_scans == 4
    assert settings.log_json is True


def test_dotenv_file_is_read(tmp_path):
    # the autouse fixture runs every test from tmp_path
    (tmp_path / ".env").write_text("LEVELS_SEARCH_DB_PATH=from-dotenv.sqlite\n", encoding="utf-8")

    assert load_settings().db_path == Path("from-dotenv.sqlite")


def test_keyword_overrides_win(monkeypatch):
    monkeypatch.setenv("LEVELS_SEARCH_NAMESPACE", "env")

    assert load_settings(namespace="explicit").namespace == "explicit"


@pytest.mark.parametrize(
    "overrides",
    [
        {"namespace": "   "},
        {"store_backend": "redis"},
        {"max_concurrent_scans": 0},
        {"scan_page_size": 0},
    ],
)
def test_invalid_values_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError, match="Invalid levels-search settings"):
        load_settings(**overrides)
