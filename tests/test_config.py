"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

from shoplist.config import get_settings


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("SHOPLIST_LOG_FORMAT", "json")
    monkeypatch.setenv("SHOPLIST_SQL_ECHO", "yes")
    monkeypatch.setenv("SHOPLIST_ID_MAX_ATTEMPTS", "25")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.log_format == "json"
    assert settings.sql_echo is True
    assert settings.id_max_attempts == 25
    assert settings.database_path.name == "settings_shoplist.db"


def test_invalid_numbers_are_ignored(monkeypatch):
    monkeypatch.setenv("SHOPLIST_ID_MAX_ATTEMPTS", "lots")
    get_settings.cache_clear()

    assert get_settings().id_max_attempts == 10_000


def test_env_file_fallback(tmp_path, monkeypatch):
    monkeypatch.delenv("SHOPLIST_DATABASE_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text(
        "# local overrides\nSHOPLIST_DATABASE_PATH=from-env-file.db\nSHOPLIST_LOG_LEVEL=DEBUG\n",
        encoding="utf-8",
    )
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.database_path == Path("from-env-file.db")
    assert settings.log_level == "DEBUG"


def test_env_file_accepts_export_and_quotes(tmp_path, monkeypatch):
    monkeypatch.delenv("SHOPLIST_DATABASE_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text(
        'export SHOPLIST_DATABASE_PATH="quoted list.db"\n'
        "SHOPLIST_SQL_ECHO='true'\n"
        "not a setting\n",
        encoding="utf-8",
    )
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.database_path == Path("quoted list.db")
    assert settings.sql_echo is True
