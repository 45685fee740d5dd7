"""
Observability helpers (telemetry, privacy utilities) for the budget client.

The client library and the Streamlit app import from this package so log
records carry the same fields and never include raw email addresses.
"""

from .privacy import REDACTED, hash_identity, hash_payload, redact_fields
from .telemetry import (
    CORRELATION_ID_HEADER,
    RequestContextToken,
    SessionContextToken,
    bind_request_context,
    bind_session_context,
    current_request_id,
    current_session_id,
    new_request_id,
    reset_request_context,
    reset_session_context,
    setup_telemetry,
)

__all__ = [
    "REDACTED",
    "hash_identity",
    "hash_payload",
    "redact_fields",
    "CORRELATION_ID_HEADER",
    "RequestContextToken",
    "SessionContextToken",
    "bind_request_context",
    "bind_session_context",
    "current_request_id",
    "current_session_id",
    "new_request_id",
    "reset_request_context",
    "reset_session_context",
    "setup_telemetry",
]
