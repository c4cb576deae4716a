"""Client settings for responses-dsl.

Values resolve from explicit overrides, then the environment, then an
optional TOML file, then defaults.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from responses_dsl.api.transport import DEFAULT_BASE_URL, DEFAULT_USER_AGENT


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


ENV_API_KEY = "OPENAI_API_KEY"
ENV_BASE_URL = "OPENAI_BASE_URL"
ENV_MODEL = "RESPONSES_DSL_MODEL"
ENV_LOG_LEVEL = "RESPONSES_DSL_LOG_LEVEL"
ENV_CONFIG_PATH = "RESPONSES_DSL_CONFIG"


class Settings(BaseModel):
    """Resolved client settings."""

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    model: str | None = None
    log_level: LogLevel = LogLevel.WARNING
    timeout: float | None = None
    user_agent: str | None = DEFAULT_USER_AGENT

    @field_validator("api_key")
    @classmethod
    def _strip_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped if stripped else None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return stripped

    @field_validator("model")
    @classmethod
    def _validate_model(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("model cannot be empty")
        return value.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive when provided")
        return value

    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
) -> Settings:
    env = os.environ if env is None else env
    overrides = overrides or {}
    path_value = config_path or env.get(ENV_CONFIG_PATH)
    config_data = _read_toml(Path(path_value)) if path_value else {}

    values = {
        "api_key": _first_value(
            _clean_str(overrides.get("api_key")),
            _clean_str(env.get(ENV_API_KEY)),
            _clean_str(_get_config_value(config_data, "auth", "api_key")),
        ),
        "base_url": _first_value(
            _clean_str(overrides.get("base_url")),
            _clean_str(env.get(ENV_BASE_URL)),
            _clean_str(_get_config_value(config_data, "client", "base_url")),
        ),
        "model": _first_value(
            _clean_str(overrides.get("model")),
            _clean_str(env.get(ENV_MODEL)),
            _clean_str(_get_config_value(config_data, "client", "model")),
        ),
        "timeout": _first_value(
            overrides.get("timeout"),
            _get_config_value(config_data, "client", "timeout"),
        ),
        "user_agent": _first_value(
            _clean_str(overrides.get("user_agent")),
            _clean_str(_get_config_value(config_data, "client", "user_agent")),
        ),
        "log_level": _first_value(
            _clean_str(overrides.get("log_level")),
            _clean_str(env.get(ENV_LOG_LEVEL)),
            _clean_str(_get_config_value(config_data, "logging", "log_level")),
        ),
    }
    return Settings(**{key: value for key, value in values.items() if value is not None})


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_config_value(config: Mapping[str, Any], section: str, key: str) -> Any:
    section_data = config.get(section)
    if not isinstance(section_data, dict):
        return None
    return section_data.get(key)


def _clean_str(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _first_value(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = ["LogLevel", "Settings", "load_settings"]
