"""Client-side retry orchestration for quota failures.

The orchestrator holds at most one armed countdown. A quota failure arms it
with ``max(retry_after_seconds, floor_seconds)``; when the countdown reaches
zero the held ``RetryAction`` is dispatched exactly once. A newer quota
failure replaces the armed countdown outright. Any other failure is only
displayed and waits for the user.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

import structlog

from reviewdash.errors import Failure
from reviewdash.models.retry import PendingRetry, RetryAction

log = structlog.get_logger()

Dispatch = Callable[[RetryAction], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]
Listener = Callable[["RetryOrchestrator"], None]


class RetryState(StrEnum):
    IDLE = "idle"
    ERROR_DISPLAYED = "error_displayed"
    COUNTING_DOWN = "counting_down"


class RetryOrchestrator:
    def __init__(
        self,
        dispatch: Dispatch,
        floor_seconds: int = 60,
        tick_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._dispatch = dispatch
        self._sleep = sleep
        self._timer: asyncio.Task[None] | None = None
        self._listeners: list[Listener] = []
        self.floor_seconds = floor_seconds
        self.tick_seconds = tick_seconds
        self.state = RetryState.IDLE
        self.error: Failure | None = None
        self.pending: PendingRetry | None = None

    @property
    def remaining_seconds(self) -> int:
        return 0 if self.pending is None else self.pending.remaining_seconds

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` after every state change and countdown tick."""
        self._listeners.append(listener)

    def report(self, failure: Failure, action: RetryAction | None = None) -> None:
        """Show ``failure``; arm a countdown for ``action`` if it is a quota failure."""
        self._cancel_timer()
        self.error = failure

        if not failure.is_quota or action is None:
            self.pending = None
            self.state = RetryState.ERROR_DISPLAYED
            self._notify()
            return

        seconds = max(failure.retry_after_seconds or 0, self.floor_seconds)
        pending = PendingRetry(action=action, failure=failure, remaining_seconds=seconds)
        self.pending = pending
        self.state = RetryState.COUNTING_DOWN
        self._timer = asyncio.get_running_loop().create_task(self._count_down(pending))
        log.info("retry_scheduled", resource=action.resource.value, seconds=seconds)
        self._notify()

    def dismiss(self) -> None:
        """Cancel any countdown and discard its action without running it."""
        if self.pending is not None:
            log.info("retry_dismissed", resource=self.pending.action.resource.value)
        self._cancel_timer()
        self.pending = None
        self.error = None
        self.state = RetryState.IDLE
        self._notify()

    def clear_error(self) -> None:
        """Drop a displayed non-quota error; an armed countdown is left alone."""
        if self.state is RetryState.ERROR_DISPLAYED:
            self.error = None
            self.state = RetryState.IDLE
            self._notify()

    async def wait(self) -> None:
        """Block until no countdown is armed, following replacements."""
        while self._timer is not None:
            timer = self._timer
            await asyncio.wait({timer})
            if self._timer is timer:
                break

    async def _count_down(self, pending: PendingRetry) -> None:
        while pending.remaining_seconds > 0:
            await self._sleep(self.tick_seconds)
            pending.remaining_seconds -= 1
            self._notify()

        # Detach before dispatching: the dispatched load may report() again.
        self._timer = None
        self.pending = None
        self.error = None
        self.state = RetryState.IDLE
        self._notify()

        log.info("retry_fired", resource=pending.action.resource.value)
        try:
            await self._dispatch(pending.action)
        except Exception as exc:
            log.error("retry_dispatch_error", resource=pending.action.resource.value, exc_info=True)
            self.report(Failure.upstream(str(exc) or "Retry failed"))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        for listener in self._listeners:
            try:
                listener(self)
            except Exception:
                log.error("retry_listener_error", state=self.state.value, exc_info=True)
