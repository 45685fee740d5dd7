"""
Session orchestration for the budget planner form.

`SessionController` is the only writer of the loading flag and of the display
state (result, history, cities, notices). The presentation layer reads those
values and forwards button clicks here; every action runs as a sequence of
named workflow steps so a failure in one step is reported without corrupting
what earlier steps produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple
from uuid import uuid4

from budget_client import BudgetServiceClient
from budget_model import BudgetRequest, BudgetResult, City, HistoryEntry
from form_state import FormState
from retrying_caller import CallCancelledError, CancellationToken, ExhaustedRetriesError, PreconditionError
from shared.observability import bind_session_context, hash_identity, reset_session_context

logger = logging.getLogger(__name__)

CITY_ERROR_NOTICE = "Error fetching cities. Please try refreshing the page or check your internet connection."
SUBMIT_ERROR_NOTICE = (
    "Error calculating budget. The backend might be waking up. Please try again in a few seconds."
)
HISTORY_ERROR_NOTICE = (
    "Error fetching budget history. The backend might be waking up. Please try again in a few seconds."
)


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DISPLAYING = "displaying"


@dataclass(frozen=True)
class Notice:
    step: str
    message: str
    level: str = "error"


@dataclass
class SessionDisplayState:
    phase: SessionPhase = SessionPhase.IDLE
    loading: bool = False
    result: Optional[BudgetResult] = None
    history: List[HistoryEntry] = field(default_factory=list)
    cities: List[City] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)


@dataclass(frozen=True)
class WorkflowStep:
    name: str
    call: Callable[[CancellationToken], Awaitable[Any]]
    on_success: Callable[[Any], None]
    failure_notice: str
    enabled: bool = True


class SessionController:
    """Routes user actions to the budgeting service and call outcomes into display state."""

    def __init__(
        self,
        client: BudgetServiceClient,
        form: FormState | None = None,
        *,
        session_id: str | None = None,
    ) -> None:
        self._client = client
        self._form = form or FormState()
        self._state = SessionDisplayState()
        self._cancel_token: CancellationToken | None = None
        self.session_id = session_id or uuid4().hex

    @property
    def form(self) -> FormState:
        return self._form

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def result(self) -> Optional[BudgetResult]:
        return self._state.result

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._state.history)

    @property
    def cities(self) -> Tuple[City, ...]:
        return tuple(self._state.cities)

    @property
    def notices(self) -> Tuple[Notice, ...]:
        return tuple(self._state.notices)

    @property
    def can_view_history(self) -> bool:
        return bool(self._form.email.strip()) and not self._state.loading

    def total_expenses(self) -> float:
        return self._form.total_expenses()

    def drain_notices(self) -> List[Notice]:
        """Hand pending notices to the presentation layer and forget them."""

        notices = list(self._state.notices)
        self._state.notices.clear()
        return notices

    def cancel(self) -> bool:
        """Ask the in-flight retry sequence to stop before its next attempt."""

        if self._cancel_token is None or not self._state.loading:
            return False
        self._cancel_token.cancel()
        return True

    async def on_mount(self) -> bool:
        steps = [
            WorkflowStep(
                name="list_cities",
                call=lambda token: self._client.list_cities(cancel_token=token),
                on_success=self._store_cities,
                failure_notice=CITY_ERROR_NOTICE,
            )
        ]
        return await self._run_action("on_mount", steps, settle_phase=lambda _: SessionPhase.IDLE)

    async def submit(self) -> bool:
        """
        Submit the current form and refresh history for the submitted email.

        Returns False without dispatching anything while another action is loading.
        """

        if self._state.loading:
            logger.info({"event": "submit_ignored", "reason": "loading"})
            return False

        request = self._form.to_request()
        steps = [
            WorkflowStep(
                name="submit_budget",
                call=lambda token: self._client.submit_budget(request, cancel_token=token),
                on_success=self._store_result,
                failure_notice=SUBMIT_ERROR_NOTICE,
            ),
            WorkflowStep(
                name="fetch_history",
                call=lambda token: self._client.fetch_history(request.email, cancel_token=token),
                on_success=self._store_history,
                failure_notice=HISTORY_ERROR_NOTICE,
                enabled=bool(request.email),
            ),
        ]
        return await self._run_action(
            "submit",
            steps,
            settle_phase=lambda completed: (
                SessionPhase.DISPLAYING if "submit_budget" in completed else SessionPhase.IDLE
            ),
            request=request,
        )

    async def view_history(self) -> bool:
        if self._state.loading:
            logger.info({"event": "view_history_ignored", "reason": "loading"})
            return False

        email = self._form.email.strip()
        previous_phase = self._state.phase
        steps = [
            WorkflowStep(
                name="fetch_history",
                call=lambda token: self._client.fetch_history(email, cancel_token=token),
                on_success=self._store_history,
                failure_notice=HISTORY_ERROR_NOTICE,
            )
        ]
        return await self._run_action("view_history", steps, settle_phase=lambda _: previous_phase)

    async def _run_action(
        self,
        action: str,
        steps: Sequence[WorkflowStep],
        *,
        settle_phase: Callable[[List[str]], SessionPhase],
        request: BudgetRequest | None = None,
    ) -> bool:
        if self._state.loading:
            logger.info({"event": f"{action}_ignored", "reason": "loading"})
            return False

        self._state.loading = True
        self._state.phase = SessionPhase.LOADING
        self._cancel_token = CancellationToken()
        token = bind_session_context(self.session_id)
        completed: List[str] = []
        try:
            logger.info(
                {
                    "event": "session_action_started",
                    "action": action,
                    "email_hash": hash_identity(request.email) if request else None,
                }
            )
            for step in steps:
                if not step.enabled:
                    logger.info({"event": "workflow_step_skipped", "action": action, "step": step.name})
                    continue
                if not await self._run_step(step, self._cancel_token):
                    break
                completed.append(step.name)
            return True
        finally:
            self._state.phase = settle_phase(completed)
            self._state.loading = False
            self._cancel_token = None
            logger.info({"event": "session_action_finished", "action": action, "completed_steps": completed})
            reset_session_context(token)

    async def _run_step(self, step: WorkflowStep, cancel_token: CancellationToken) -> bool:
        try:
            payload = await step.call(cancel_token)
        except CallCancelledError:
            logger.info({"event": "workflow_step_cancelled", "step": step.name})
            return False
        except PreconditionError as exc:
            self._notify(Notice(step=step.name, message=str(exc), level="warning"))
            return False
        except ExhaustedRetriesError as exc:
            logger.warning(
                {
                    "event": "workflow_step_failed",
                    "step": step.name,
                    "attempts": exc.attempts,
                    "error": str(exc.last_error),
                }
            )
            self._notify(Notice(step=step.name, message=step.failure_notice))
            return False

        step.on_success(payload)
        return True

    def _notify(self, notice: Notice) -> None:
        self._state.notices.append(notice)

    def _store_cities(self, cities: List[City]) -> None:
        self._state.cities = list(cities)

    def _store_result(self, result: BudgetResult) -> None:
        self._state.result = result

    def _store_history(self, history: List[HistoryEntry]) -> None:
        self._state.history = list(history)
