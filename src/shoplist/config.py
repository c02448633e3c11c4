"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/shoplist.db"),
        description="SQLite database location used by the CLI.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    sql_echo: bool = Field(
        default=False,
        description="Echo SQL statements issued by SQLAlchemy when true.",
    )
    id_max_attempts: int = Field(
        default=10_000,
        ge=1,
        description="Maximum random draws before id generation gives up.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return _unquote(value).lower() in {"1", "true", "yes", "on"}


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", "\""}:
        return value[1:-1]
    return value


def _parse_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=value`` pairs, accepting an ``export`` prefix and quoted values."""

    if not path.is_file():
        return {}
    payload: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export ") :]
        key, sep, raw_value = line.partition("=")
        if not sep or line.startswith("#"):
            continue
        payload[key.strip()] = _unquote(raw_value)
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("SHOPLIST_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (log_level := _env("SHOPLIST_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("SHOPLIST_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (sql_echo := _env("SHOPLIST_SQL_ECHO")):
        payload["sql_echo"] = _coerce_bool(sql_echo)
    if (max_attempts := _env("SHOPLIST_ID_MAX_ATTEMPTS")):
        try:
            payload["id_max_attempts"] = int(max_attempts)
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
