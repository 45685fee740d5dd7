"""
Shared utilities for the WealthSync budget client.

This package contains code shared by the client library and the Streamlit app:
- client_settings: Backend URL, timeouts, and retry policies
- observability: Telemetry, logging, and privacy utilities
"""

from .client_settings import (
    DEFAULT_API_BASE_URL,
    ClientSettings,
    ClientSettingsError,
    RetryPolicy,
    load_client_settings,
)

__all__ = [
    "DEFAULT_API_BASE_URL",
    "ClientSettings",
    "ClientSettingsError",
    "RetryPolicy",
    "load_client_settings",
]
