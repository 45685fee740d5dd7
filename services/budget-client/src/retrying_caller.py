import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

import httpx

from shared.observability import current_request_id, current_session_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 5.0
RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[Any]]
RetryPredicate = Callable[[BaseException], bool]


class BudgetClientError(RuntimeError):
    """Base class for every error raised by the budget client."""


class TransportError(BudgetClientError):
    """A single attempt failed (network error, timeout, bad status, bad payload)."""


class ExhaustedRetriesError(BudgetClientError):
    """Every attempt of one logical call failed; wraps the last failure only."""

    def __init__(self, operation_name: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{operation_name} failed after {attempts} attempt(s): {last_error}")
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error


class PreconditionError(BudgetClientError):
    """A call was refused locally before reaching the network."""


class CallCancelledError(BudgetClientError):
    """The retry sequence was stopped through its cancellation token."""


class CancellationToken:
    """Cooperative stop signal checked between attempts of a retry sequence."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class CallMetrics:
    attempts: int
    latency_ms: float


@dataclass(frozen=True)
class Success(Generic[T]):
    payload: T
    metrics: CallMetrics


@dataclass(frozen=True)
class Failure:
    error: BaseException
    metrics: CallMetrics


CallOutcome = Union[Success[T], Failure]


def retry_on_any_error(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


def is_transient_error(exc: BaseException) -> bool:
    """Classify failures worth retrying: connection problems, timeouts, and 5xx/429-style statuses."""

    if isinstance(exc, TransportError) and exc.__cause__ is not None:
        exc = exc.__cause__
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status in RETRYABLE_STATUS_CODES
    if isinstance(exc, (httpx.RequestError, asyncio.TimeoutError)):
        return True
    return False


class RetryingCaller:
    """Runs one async operation with a bounded number of attempts and a fixed pause between them."""

    def __init__(
        self,
        *,
        sleep: SleepFn = asyncio.sleep,
        should_retry: RetryPredicate = retry_on_any_error,
    ) -> None:
        self._sleep = sleep
        self._should_retry = should_retry

    async def attempt(
        self,
        operation: Operation[T],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_between_attempts: float = DEFAULT_DELAY_SECONDS,
        *,
        name: str = "operation",
        cancel_token: CancellationToken | None = None,
    ) -> CallOutcome[T]:
        max_attempts = max(1, max_attempts)
        delay_between_attempts = max(0.0, delay_between_attempts)
        attempts = 0
        start_time = time.perf_counter()

        while True:
            if cancel_token is not None and cancel_token.cancelled:
                metrics = self._metrics(start_time, attempts)
                self._log_cancelled(name, metrics)
                return Failure(CallCancelledError(f"{name} cancelled after {attempts} attempt(s)"), metrics)

            attempts += 1
            try:
                payload = await operation()
            except Exception as exc:
                metrics = self._metrics(start_time, attempts)
                if attempts < max_attempts and self._should_retry(exc):
                    self._log_retry(name, metrics, delay_between_attempts, exc)
                    await self._sleep(delay_between_attempts)
                    continue
                self._log_failure(name, metrics, exc)
                return Failure(exc, metrics)

            metrics = self._metrics(start_time, attempts)
            self._log_success(name, metrics)
            return Success(payload, metrics)

    def _metrics(self, start_time: float, attempts: int) -> CallMetrics:
        latency_ms = (time.perf_counter() - start_time) * 1000
        return CallMetrics(attempts=attempts, latency_ms=round(latency_ms, 2))

    def _log_success(self, name: str, metrics: CallMetrics) -> None:
        logger.info(
            {
                "event": "remote_call",
                "outcome": "success",
                "operation": name,
                "request_id": current_request_id(),
                "session_id": current_session_id(),
                "attempts": metrics.attempts,
                "latency_ms": metrics.latency_ms,
            }
        )

    def _log_retry(self, name: str, metrics: CallMetrics, delay: float, exc: Exception) -> None:
        logger.warning(
            {
                "event": "remote_call",
                "outcome": "retry",
                "operation": name,
                "request_id": current_request_id(),
                "session_id": current_session_id(),
                "attempts": metrics.attempts,
                "latency_ms": metrics.latency_ms,
                "retry_in_seconds": delay,
                "error": str(exc),
            }
        )

    def _log_failure(self, name: str, metrics: CallMetrics, exc: Exception) -> None:
        logger.error(
            {
                "event": "remote_call",
                "outcome": "failure",
                "operation": name,
                "request_id": current_request_id(),
                "session_id": current_session_id(),
                "attempts": metrics.attempts,
                "latency_ms": metrics.latency_ms,
                "error": str(exc),
            }
        )

    def _log_cancelled(self, name: str, metrics: CallMetrics) -> None:
        logger.info(
            {
                "event": "remote_call",
                "outcome": "cancelled",
                "operation": name,
                "request_id": current_request_id(),
                "session_id": current_session_id(),
                "attempts": metrics.attempts,
                "latency_ms": metrics.latency_ms,
            }
        )
