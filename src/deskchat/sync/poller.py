"""Fixed-cadence poll loop with serialized fetches and total cancellation.

A :class:`PollScheduler` moves through four states::

    IDLE --start--> FETCHING --settled--> SCHEDULED --interval--> FETCHING
      \\                  \\                    \\
       +------------------+--------------------+--cancel--> STOPPED

Exactly one fetch is in flight at a time; the next one is only scheduled
after the previous one settles. A failed fetch is logged and the cadence
stays the same. Once stopped, the pending sleep is cancelled and any result
that still arrives is discarded instead of being handed to ``on_result``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ResultHandler = Callable[[T], Any]


class PollState(Enum):
    """Lifecycle states of a poll scheduler."""

    IDLE = "idle"
    FETCHING = "fetching"
    SCHEDULED = "scheduled"
    STOPPED = "stopped"


class PollScheduler(Generic[T]):
    """Drive ``fetch`` every ``interval`` seconds and hand results to ``on_result``.

    ``on_result`` may be a plain function or a coroutine function; it runs
    inside the fetch slot, so a slow handler delays the next tick of this
    scheduler only.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        on_result: ResultHandler[T],
        interval: float,
        *,
        name: str = "poll",
    ) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self._fetch = fetch
        self._on_result = on_result
        self.interval = float(interval)
        self.name = name
        self._state = PollState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._in_flight = 0
        self.fetch_count = 0
        self.failure_count = 0
        self.last_error: BaseException | None = None

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state not in (PollState.IDLE, PollState.STOPPED)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def start(self) -> None:
        """Issue the first fetch immediately and keep polling.

        Must be called from inside a running event loop. Starting a stopped
        scheduler is an error: create a new instance instead.
        """
        if self._state is PollState.STOPPED:
            raise RuntimeError(f"Scheduler {self.name!r} was stopped and cannot restart")
        if self._task is not None:
            return
        self._state = PollState.FETCHING
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"poll:{self.name}"
        )
        logger.debug("Started poll scheduler %s (every %.2fs)", self.name, self.interval)

    def cancel(self) -> None:
        """Stop polling now; no further fetch is issued and late results are dropped."""
        if self._state is PollState.STOPPED:
            return
        self._state = PollState.STOPPED
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Cancelled poll scheduler %s", self.name)

    async def stop(self) -> None:
        """Cancel and wait until the background task has finished."""
        self.cancel()
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            # Re-raise only if the caller itself is being cancelled.
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def _run(self) -> None:
        try:
            while self._state is not PollState.STOPPED:
                self._state = PollState.FETCHING
                await self._tick()
                if self._state is PollState.STOPPED:
                    break
                self._state = PollState.SCHEDULED
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            self._state = PollState.STOPPED
            raise

    async def _tick(self) -> None:
        self._in_flight += 1
        try:
            self.fetch_count += 1
            try:
                result = await self._fetch()
            except Exception as exc:
                self.failure_count += 1
                self.last_error = exc
                logger.warning("Poll %s fetch failed: %s", self.name, exc)
                return

            if self._state is PollState.STOPPED:
                logger.debug("Discarding result for stopped poll %s", self.name)
                return

            try:
                outcome = self._on_result(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                self.failure_count += 1
                self.last_error = exc
                logger.error("Poll %s failed to apply result: %s", self.name, exc, exc_info=True)
                return

            self.last_error = None
        finally:
            self._in_flight -= 1
