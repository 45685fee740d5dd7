"""
Typed bindings for the three WealthSync budgeting endpoints.

Each operation builds a request closure and hands it to `RetryingCaller` with
its own retry policy. The per-attempt timeout is applied to the httpx request,
never to the retry sequence as a whole.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, TypeVar

import httpx
from pydantic import TypeAdapter

from budget_model import BudgetRequest, BudgetResult, City, HistoryEntry
from retrying_caller import (
    CallCancelledError,
    CancellationToken,
    ExhaustedRetriesError,
    Failure,
    PreconditionError,
    RetryingCaller,
    TransportError,
    is_transient_error,
)
from shared.client_settings import ClientSettings, RetryPolicy, load_client_settings
from shared.observability import (
    CORRELATION_ID_HEADER,
    bind_request_context,
    hash_identity,
    hash_payload,
    new_request_id,
    redact_fields,
    reset_request_context,
)

logger = logging.getLogger(__name__)

CITIES_PATH = "/api/cities"
BUDGET_PATH = "/api/budget"
HISTORY_PATH = "/api/budget/history"

# Numeric fields are safe to log; identity and location are not.
LOGGABLE_REQUEST_FIELDS = ("income", "expenses", "savings_goal")

T = TypeVar("T")

_CITY_LIST = TypeAdapter(List[City])
_HISTORY_LIST = TypeAdapter(List[HistoryEntry])


class BudgetServiceClient:
    """Async client for the budgeting backend with per-operation retry policies."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        caller: RetryingCaller | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or load_client_settings()
        if caller is None:
            if self._settings.retry_transient_only:
                caller = RetryingCaller(should_retry=is_transient_error)
            else:
                caller = RetryingCaller()
        self._caller = caller
        self._transport = transport

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def list_cities(self, *, cancel_token: CancellationToken | None = None) -> List[City]:
        return await self._call(
            "list_cities",
            "GET",
            CITIES_PATH,
            parse=_CITY_LIST.validate_python,
            policy=self._settings.city_retry,
            cancel_token=cancel_token,
        )

    async def submit_budget(
        self,
        request: BudgetRequest,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> BudgetResult:
        payload = request.to_payload()
        logger.info(
            {
                "event": "submit_budget",
                "email_hash": hash_identity(request.email),
                "location": request.location or None,
                "payload_hash": hash_payload(payload),
                "payload": redact_fields(
                    {key: value for key, value in payload.items() if key != "expense_categories"},
                    LOGGABLE_REQUEST_FIELDS,
                ),
            }
        )
        return await self._call(
            "submit_budget",
            "POST",
            BUDGET_PATH,
            parse=BudgetResult.model_validate,
            policy=self._settings.default_retry,
            json=payload,
            cancel_token=cancel_token,
        )

    async def fetch_history(
        self,
        email: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> List[HistoryEntry]:
        if not email or not email.strip():
            raise PreconditionError("An email address is required to fetch budget history.")

        logger.info({"event": "fetch_history", "email_hash": hash_identity(email)})
        return await self._call(
            "fetch_history",
            "POST",
            HISTORY_PATH,
            parse=_HISTORY_LIST.validate_python,
            policy=self._settings.default_retry,
            json={"email": email},
            cancel_token=cancel_token,
        )

    async def _call(
        self,
        name: str,
        method: str,
        path: str,
        *,
        parse: Callable[[Any], T],
        policy: RetryPolicy,
        json: Optional[Mapping[str, Any]] = None,
        cancel_token: CancellationToken | None = None,
    ) -> T:
        url = f"{self._settings.api_base_url}{path}"
        request_id = new_request_id()

        async def operation() -> T:
            return await self._send(method, url, request_id=request_id, parse=parse, json=json)

        token = bind_request_context(request_id)
        try:
            outcome = await self._caller.attempt(
                operation,
                policy.max_attempts,
                policy.delay_seconds,
                name=name,
                cancel_token=cancel_token,
            )
        finally:
            reset_request_context(token)
        if isinstance(outcome, Failure):
            if isinstance(outcome.error, CallCancelledError):
                raise outcome.error
            raise ExhaustedRetriesError(name, outcome.metrics.attempts, outcome.error) from outcome.error
        return outcome.payload

    async def _send(
        self,
        method: str,
        url: str,
        *,
        request_id: str,
        parse: Callable[[Any], T],
        json: Optional[Mapping[str, Any]] = None,
    ) -> T:
        headers = {CORRELATION_ID_HEADER: request_id}
        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, json=json)
            response.raise_for_status()
            return parse(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            # ValidationError and JSONDecodeError are both ValueErrors.
            raise TransportError(f"{method} {url} failed: {exc}") from exc
