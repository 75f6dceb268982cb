"""Independent low-frequency poll of the unread notification counter."""

from __future__ import annotations

import logging
from typing import Protocol

from deskchat.core.settings import settings

from .observable import Observable
from .poller import PollScheduler, PollState

logger = logging.getLogger(__name__)


class UnreadSource(Protocol):
    """The part of the store the unread channel needs."""

    async def unread_count(self) -> int:
        ...


class UnreadCounterChannel:
    """Tracks a single unread scalar on its own poll scheduler.

    The channel never looks at message content and has no knowledge of the
    open conversation: opening, switching or closing a conversation leaves
    its cadence and lifecycle untouched.
    """

    def __init__(self, source: UnreadSource, interval: float | None = None) -> None:
        self._source = source
        self.interval = float(
            interval if interval is not None else settings.unread_poll_interval_seconds
        )
        self.count: Observable[int] = Observable(0, name="unread")
        self._scheduler: PollScheduler[int] | None = None

    @property
    def state(self) -> PollState:
        if self._scheduler is None:
            return PollState.IDLE
        return self._scheduler.state

    @property
    def scheduler(self) -> PollScheduler[int] | None:
        return self._scheduler

    async def get_unread_count(self) -> int:
        """Ask the store for the current unread count."""
        count = await self._source.unread_count()
        if count < 0:
            raise ValueError(f"Store reported a negative unread count: {count}")
        return count

    def _apply(self, count: int) -> None:
        if count != self.count.value:
            logger.debug("Unread count changed %d -> %d", self.count.value, count)
            self.count.set(count)

    def start(self) -> None:
        """Begin polling; a fetch is issued immediately."""
        if self._scheduler is not None and self._scheduler.active:
            return
        self._scheduler = PollScheduler(
            self.get_unread_count,
            self._apply,
            self.interval,
            name="unread",
        )
        self._scheduler.start()

    def cancel(self) -> None:
        if self._scheduler is not None:
            self._scheduler.cancel()

    async def stop(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
