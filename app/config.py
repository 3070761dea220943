"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

APP_VERSION = "1.0.0"

_DEVELOPMENT_ENVIRONMENTS = {"local", "dev", "development", "test"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_int_env(name: str) -> int | None:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError:
        return None


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level application settings.
    """

    environment: str = "local"
    version: str = APP_VERSION
    frontend_url: str = "http://localhost:3000"
    auto_create_schema: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment in _DEVELOPMENT_ENVIRONMENTS


@dataclass(frozen=True)
class UploadSettings:
    """
    Runtime settings for spreadsheet uploads.
    """

    storage_dir: str = "data/uploads"
    max_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class ValidationSettings:
    """
    Row validation bounds.
    """

    min_year: int = 2020
    max_year: int = 2030
    log_validation_errors: bool = True


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for outbound collaborators.

    Outbound calls are single-attempt; the timeout is the only guard.
    """

    timeout_seconds: float = 15.0


@dataclass(frozen=True)
class HubSpotSettings:
    """
    HubSpot CRM connector and sync settings.
    """

    api_key: str | None = None
    base_url: str = "https://api.hubapi.com"
    page_limit: int = 100
    sync_quarter: str = "Q1"
    sync_year: int | None = None


@dataclass(frozen=True)
class LLMSettings:
    """
    Narrative generation settings.
    """

    adapter: str = "openai"
    api_key: str | None = None
    model: str = "gpt-4"
    max_tokens: int = 2000
    temperature: float = 0.7
    base_url: str | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.
    """

    return AppSettings(
        environment=_get_str_env("ENVIRONMENT", "local").lower(),
        frontend_url=_get_str_env("FRONTEND_URL", "http://localhost:3000"),
        auto_create_schema=_get_bool_env("DB_AUTO_CREATE", False),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    return UploadSettings(
        storage_dir=_get_str_env("UPLOAD_STORAGE_DIR", "data/uploads"),
        max_bytes=max(1, _get_int_env("UPLOAD_MAX_BYTES", 10 * 1024 * 1024)),
    )


@lru_cache(maxsize=1)
def get_validation_settings() -> ValidationSettings:
    """
    Return cached row validation settings from environment variables.
    """

    min_year = _get_int_env("METRIC_YEAR_MIN", 2020)
    max_year = _get_int_env("METRIC_YEAR_MAX", 2030)
    if max_year < min_year:
        raise RuntimeError(
            f"METRIC_YEAR_MAX ({max_year}) must not be lower than METRIC_YEAR_MIN ({min_year})."
        )
    return ValidationSettings(
        min_year=min_year,
        max_year=max_year,
        log_validation_errors=_get_bool_env("INGEST_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
    )


@lru_cache(maxsize=1)
def get_hubspot_settings() -> HubSpotSettings:
    """
    Return HubSpot connector settings from environment variables.
    """

    return HubSpotSettings(
        api_key=_get_optional_str_env("HUBSPOT_API_KEY"),
        base_url=_get_str_env("HUBSPOT_BASE_URL", "https://api.hubapi.com").rstrip("/"),
        page_limit=max(1, _get_int_env("HUBSPOT_PAGE_LIMIT", 100)),
        sync_quarter=_get_str_env("HUBSPOT_SYNC_QUARTER", "Q1").upper(),
        sync_year=_get_optional_int_env("HUBSPOT_SYNC_YEAR"),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return narrative generation settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        model=_get_str_env("LLM_MODEL", "gpt-4"),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 2000)),
        temperature=_get_float_env("LLM_TEMPERATURE", 0.7),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )
