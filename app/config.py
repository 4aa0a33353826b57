"""
app/config.py

Environment-driven settings for the dashboard service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def load_env_files(root: Path = _PROJECT_ROOT) -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
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
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string; blank values count as unset.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for backend connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class BackendAPISettings:
    """
    Location and credentials of the business backend REST API.
    """

    base_url: str = "http://localhost:5000"
    token: str | None = None


@dataclass(frozen=True)
class DashboardSettings:
    """
    Behaviour of dashboard aggregation.

    ``apply_fallback`` only affects the admin overview; company dashboards
    always report real figures.
    """

    apply_fallback: bool = True
    growth_months: int = 12
    fetch_workers: int = 8
    admin_company_id: str | None = None
    default_company_id: str | None = None
    companies_limit: int = 100
    low_stock_limit: int = 50
    parties_limit: int = 100


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_backend_api_settings() -> BackendAPISettings:
    return BackendAPISettings(
        base_url=_get_str_env("BACKEND_API_BASE_URL", "http://localhost:5000").rstrip("/"),
        token=_get_optional_str_env("BACKEND_API_TOKEN"),
    )


@lru_cache(maxsize=1)
def get_dashboard_settings() -> DashboardSettings:
    """
    Return cached dashboard settings from environment variables.
    """

    return DashboardSettings(
        apply_fallback=_get_bool_env("DASHBOARD_APPLY_FALLBACK", True),
        growth_months=max(1, _get_int_env("DASHBOARD_GROWTH_MONTHS", 12)),
        fetch_workers=max(1, _get_int_env("DASHBOARD_FETCH_WORKERS", 8)),
        admin_company_id=_get_optional_str_env("DASHBOARD_ADMIN_COMPANY_ID"),
        default_company_id=_get_optional_str_env("DASHBOARD_DEFAULT_COMPANY_ID"),
        companies_limit=max(1, _get_int_env("DASHBOARD_COMPANIES_LIMIT", 100)),
        low_stock_limit=max(1, _get_int_env("DASHBOARD_LOW_STOCK_LIMIT", 50)),
        parties_limit=max(1, _get_int_env("DASHBOARD_PARTIES_LIMIT", 100)),
    )
