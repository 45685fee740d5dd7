from __future__ import annotations

"""
Environment-driven settings for talking to the WealthSync budgeting backend.

The backend is hosted on a free tier that sleeps when idle, so the retry and
timeout knobs are the part of the client most likely to need tuning per
deployment. Loading and validating them in one place keeps the Streamlit app
and the tests from duplicating parsing logic.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_BASE_URL = "https://wealthsync-backend2.onrender.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 5.0
DEFAULT_CITY_MAX_ATTEMPTS = 5
DEFAULT_CITY_RETRY_DELAY_SECONDS = 10.0

API_BASE_URL_ENV = "WEALTHSYNC_API_BASE_URL"
TIMEOUT_ENV = "WEALTHSYNC_TIMEOUT_SECONDS"
MAX_ATTEMPTS_ENV = "WEALTHSYNC_MAX_ATTEMPTS"
RETRY_DELAY_ENV = "WEALTHSYNC_RETRY_DELAY_SECONDS"
CITY_MAX_ATTEMPTS_ENV = "WEALTHSYNC_CITY_MAX_ATTEMPTS"
CITY_RETRY_DELAY_ENV = "WEALTHSYNC_CITY_RETRY_DELAY_SECONDS"
TRANSIENT_ONLY_ENV = "WEALTHSYNC_RETRY_TRANSIENT_ONLY"


class ClientSettingsError(RuntimeError):
    """Raised when client configuration cannot be constructed."""


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int
    delay_seconds: float


@dataclass(frozen=True, slots=True)
class ClientSettings:
    api_base_url: str
    timeout_seconds: float
    default_retry: RetryPolicy
    city_retry: RetryPolicy
    retry_transient_only: bool = False


def load_client_settings(environ: Optional[dict[str, str]] = None) -> ClientSettings:
    """
    Construct ClientSettings from environment variables.

    Args:
        environ: Mapping to read from instead of ``os.environ`` (used by tests).
    """

    env = os.environ if environ is None else environ

    api_base_url = _normalize_base_url(env.get(API_BASE_URL_ENV))
    timeout_seconds = _parse_float(env.get(TIMEOUT_ENV), DEFAULT_TIMEOUT_SECONDS, TIMEOUT_ENV)
    if timeout_seconds <= 0:
        raise ClientSettingsError(f"{TIMEOUT_ENV} must be positive (received '{timeout_seconds}')")

    default_retry = RetryPolicy(
        max_attempts=_parse_attempts(env.get(MAX_ATTEMPTS_ENV), DEFAULT_MAX_ATTEMPTS, MAX_ATTEMPTS_ENV),
        delay_seconds=_parse_delay(env.get(RETRY_DELAY_ENV), DEFAULT_RETRY_DELAY_SECONDS, RETRY_DELAY_ENV),
    )
    city_retry = RetryPolicy(
        max_attempts=_parse_attempts(
            env.get(CITY_MAX_ATTEMPTS_ENV), DEFAULT_CITY_MAX_ATTEMPTS, CITY_MAX_ATTEMPTS_ENV
        ),
        delay_seconds=_parse_delay(
            env.get(CITY_RETRY_DELAY_ENV), DEFAULT_CITY_RETRY_DELAY_SECONDS, CITY_RETRY_DELAY_ENV
        ),
    )

    return ClientSettings(
        api_base_url=api_base_url,
        timeout_seconds=timeout_seconds,
        default_retry=default_retry,
        city_retry=city_retry,
        retry_transient_only=_parse_bool(env.get(TRANSIENT_ONLY_ENV)),
    )


def _normalize_base_url(raw_value: Optional[str]) -> str:
    candidate = (raw_value or "").strip().rstrip("/")
    if not candidate:
        return DEFAULT_API_BASE_URL
    if not candidate.startswith(("http://", "https://")):
        raise ClientSettingsError(f"{API_BASE_URL_ENV} must be an http(s) URL (received '{raw_value}')")
    return candidate


def _parse_float(raw_value: Optional[str], default: float, env_key: str) -> float:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return float(raw_value)
    except ValueError as exc:
        raise ClientSettingsError(f"{env_key} must be numeric (received '{raw_value}')") from exc


def _parse_int(raw_value: Optional[str], default: int, env_key: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return int(raw_value)
    except ValueError as exc:
        raise ClientSettingsError(f"{env_key} must be an integer (received '{raw_value}')") from exc


def _parse_attempts(raw_value: Optional[str], default: int, env_key: str) -> int:
    attempts = _parse_int(raw_value, default, env_key)
    if attempts < 1:
        raise ClientSettingsError(f"{env_key} must be at least 1 (received '{raw_value}')")
    return attempts


def _parse_delay(raw_value: Optional[str], default: float, env_key: str) -> float:
    delay = _parse_float(raw_value, default, env_key)
    if delay < 0:
        raise ClientSettingsError(f"{env_key} cannot be negative (received '{raw_value}')")
    return delay


def _parse_bool(raw_value: Optional[str]) -> bool:
    return (raw_value or "").strip().lower() in {"1", "true", "yes", "on"}
