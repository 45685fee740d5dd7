import httpx
import pytest
from retrying_caller import (
    CallCancelledError,
    CancellationToken,
    Failure,
    RetryingCaller,
    Success,
    TransportError,
    is_transient_error,
)


class FlakyOperation:
    def __init__(self, failures_before_success: int, payload: object = "ok") -> None:
        self.calls = 0
        self._failures = failures_before_success
        self._payload = payload

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self._failures:
            raise TransportError(f"attempt {self.calls} failed")
        return self._payload


@pytest.mark.anyio
async def test_success_on_first_attempt_incurs_no_delay(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=0, payload={"status": "ok"})
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 3, 5.0)

    assert isinstance(outcome, Success)
    assert outcome.payload == {"status": "ok"}
    assert outcome.metrics.attempts == 1
    assert operation.calls == 1
    assert recording_sleep.delays == []


@pytest.mark.anyio
async def test_always_failing_operation_runs_exactly_max_attempts(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=99)
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 5, 10.0)

    assert isinstance(outcome, Failure)
    assert operation.calls == 5
    assert outcome.metrics.attempts == 5
    assert recording_sleep.delays == [10.0, 10.0, 10.0, 10.0]


@pytest.mark.anyio
async def test_failure_surfaces_only_the_last_error(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=99)
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 3, 0)

    assert isinstance(outcome, Failure)
    assert str(outcome.error) == "attempt 3 failed"


@pytest.mark.anyio
async def test_success_after_failures_stops_retrying(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=2, payload=[1, 2, 3])
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 5, 2.5)

    assert isinstance(outcome, Success)
    assert outcome.payload == [1, 2, 3]
    assert operation.calls == 3
    assert outcome.metrics.attempts == 3
    assert recording_sleep.delays == [2.5, 2.5]


@pytest.mark.anyio
async def test_single_attempt_means_no_retry(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=1)
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 1, 10.0)

    assert isinstance(outcome, Failure)
    assert operation.calls == 1
    assert recording_sleep.delays == []


@pytest.mark.anyio
async def test_zero_delay_retries_immediately(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=1)
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 2, 0)

    assert isinstance(outcome, Success)
    assert recording_sleep.delays == [0.0]


@pytest.mark.anyio
async def test_non_positive_attempts_are_clamped_to_one(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=5)
    caller = RetryingCaller(sleep=recording_sleep)

    outcome = await caller.attempt(operation, 0, 1.0)

    assert isinstance(outcome, Failure)
    assert operation.calls == 1


@pytest.mark.anyio
async def test_cancelled_token_stops_before_next_attempt() -> None:
    token = CancellationToken()
    operation = FlakyOperation(failures_before_success=99)

    async def cancel_during_delay(seconds: float) -> None:
        token.cancel()

    caller = RetryingCaller(sleep=cancel_during_delay)

    outcome = await caller.attempt(operation, 5, 10.0, cancel_token=token)

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, CallCancelledError)
    assert operation.calls == 1
    assert outcome.metrics.attempts == 1


@pytest.mark.anyio
async def test_should_retry_predicate_can_stop_early(recording_sleep) -> None:
    operation = FlakyOperation(failures_before_success=99)
    caller = RetryingCaller(sleep=recording_sleep, should_retry=lambda exc: False)

    outcome = await caller.attempt(operation, 3, 1.0)

    assert isinstance(outcome, Failure)
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_is_transient_error_classifies_status_codes() -> None:
    request = httpx.Request("POST", "https://example.org/api/budget")

    def status_error(code: int) -> TransportError:
        response = httpx.Response(code, request=request)
        try:
            raise httpx.HTTPStatusError("bad status", request=request, response=response)
        except httpx.HTTPStatusError as exc:
            try:
                raise TransportError("wrapped") from exc
            except TransportError as wrapped:
                return wrapped

    assert is_transient_error(status_error(503)) is True
    assert is_transient_error(status_error(429)) is True
    assert is_transient_error(status_error(422)) is False
    assert is_transient_error(httpx.ConnectError("boom", request=request)) is True
    assert is_transient_error(ValueError("bad json")) is False
