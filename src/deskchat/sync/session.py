"""The open-conversation context: one merge buffer, one poll scheduler.

``ChatSession`` owns everything scoped to the conversation currently on
screen. Opening a conversation cancels the previous scheduler, bumps an
epoch counter, resets the merge buffer and cursor, and starts a scheduler
whose callbacks carry the epoch they were created under. A batch is applied
only while its epoch is still current, so a fetch that resolves after a
switch can never leak into the new conversation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Protocol

from deskchat.core.settings import settings

from .aggregator import ConversationAggregator
from .errors import SyncError, ValidationError
from .fetch import ConversationFetchClient
from .merge_buffer import MessageMergeBuffer
from .observable import Observable
from .poller import PollScheduler
from .records import Conversation, ConversationTarget, Message

logger = logging.getLogger(__name__)


class ChatStore(Protocol):
    """Message store operations used by a chat session."""

    async def fetch_messages(self, target: ConversationTarget, since_id: int = 0) -> list[Message]:
        ...

    async def send_message(self, body: str, target: ConversationTarget) -> Message:
        ...

    async def mark_read(self, message_id: int) -> None:
        ...

    async def list_conversation_payloads(self) -> list[Mapping[str, Any]]:
        ...


class ChatSession:
    """Drives the chat view of one actor.

    Args:
        store: Message store client acting for ``actor_id``.
        actor_id: Identity of the current user.
        poll_interval: Seconds between fetches for the open conversation.
        conversation_refresh_interval: Seconds between background refreshes
            of the conversation list; ``0`` disables the refresh loop.
        mark_read_on_view: Mark direct messages read once they are merged.
    """

    def __init__(
        self,
        store: ChatStore,
        actor_id: int,
        *,
        poll_interval: float | None = None,
        conversation_refresh_interval: float | None = None,
        mark_read_on_view: bool | None = None,
    ) -> None:
        self._store = store
        self.actor_id = actor_id
        self.poll_interval = float(
            poll_interval if poll_interval is not None else settings.chat_poll_interval_seconds
        )
        self.conversation_refresh_interval = float(
            conversation_refresh_interval
            if conversation_refresh_interval is not None
            else settings.conversation_refresh_interval_seconds
        )
        self.mark_read_on_view = (
            settings.mark_read_on_view if mark_read_on_view is None else mark_read_on_view
        )

        self._fetcher = ConversationFetchClient(store)
        self._buffer = MessageMergeBuffer()
        self.aggregator = ConversationAggregator(store, actor_id)
        self.messages: Observable[tuple[Message, ...]] = Observable((), name="messages")

        self._epoch = 0
        self._target: ConversationTarget | None = None
        self._scheduler: PollScheduler[list[Message]] | None = None
        self._marked_read: set[int] = set()

    @property
    def conversations(self) -> Observable[tuple[Conversation, ...]]:
        return self.aggregator.conversations

    @property
    def target(self) -> ConversationTarget | None:
        return self._target

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def cursor(self) -> int:
        return self._buffer.cursor

    @property
    def scheduler(self) -> PollScheduler[list[Message]] | None:
        return self._scheduler

    async def enter(self) -> tuple[Conversation, ...]:
        """Load the conversation list and start its background refresh."""
        conversations = await self.aggregator.refresh()
        if self.conversation_refresh_interval > 0:
            self.aggregator.start_refresh_loop(self.conversation_refresh_interval)
        return conversations

    def open(self, target: ConversationTarget) -> None:
        """Switch the view to ``target`` and start polling it.

        Must be called from inside the running event loop.
        """
        self._teardown()
        self._target = target
        epoch = self._epoch
        self._scheduler = PollScheduler(
            partial(self._fetch, epoch, target),
            partial(self._apply_batch, epoch),
            self.poll_interval,
            name=f"chat:{target.key}",
        )
        logger.info("Opened conversation %s (epoch %d)", target.key, epoch)
        self._scheduler.start()

    def select(self, conversation: Conversation) -> None:
        """Open the conversation picked from the aggregated list."""
        self.open(conversation.target)

    def close(self) -> None:
        """Leave the open conversation; pending fetches are discarded."""
        if self._target is not None:
            logger.info("Closed conversation %s", self._target.key)
        self._teardown()
        self._target = None

    async def aclose(self) -> None:
        """Tear the whole view down, waiting for background tasks to finish."""
        scheduler = self._scheduler
        self.close()
        if scheduler is not None:
            await scheduler.stop()
        await self.aggregator.stop_refresh_loop()

    async def send(self, body: str) -> Message:
        """Send ``body`` to the open conversation.

        The persisted record returned by the store is merged right away
        instead of waiting for the next poll, then the conversation list is
        refreshed. Store errors from the send itself propagate to the caller; a
        failed list refresh is only logged since the message is already stored.

        Raises:
            ValidationError: If ``body`` is blank or no conversation is open.
        """
        if not body or not body.strip():
            raise ValidationError("Message body must not be empty")
        target = self._target
        if target is None:
            raise ValidationError("No conversation is open")

        epoch = self._epoch
        message = await self._store.send_message(body, target)
        if epoch == self._epoch:
            self._publish(self._buffer.append_local(message))
        await self.aggregator.refresh()
        return message

    def _teardown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.cancel()
            self._scheduler = None
        self._epoch += 1
        self._buffer.reset()
        self._marked_read = set()
        self.messages.set(())

    async def _fetch(self, epoch: int, target: ConversationTarget) -> list[Message]:
        if epoch != self._epoch:
            return []
        return await self._fetcher.fetch(target, self._buffer.cursor)

    async def _apply_batch(self, epoch: int, batch: list[Message]) -> None:
        if epoch != self._epoch:
            logger.debug("Dropping %d message(s) from stale epoch %d", len(batch), epoch)
            return
        self._publish(self._buffer.merge(batch))
        if self.mark_read_on_view:
            await self._mark_visible_read(epoch, batch)

    def _publish(self, merged: tuple[Message, ...]) -> None:
        if merged is not self.messages.value:
            self.messages.set(merged)

    async def _mark_visible_read(self, epoch: int, batch: list[Message]) -> None:
        for message in batch:
            if epoch != self._epoch:
                return
            if message.id in self._marked_read or not message.is_unread_for(self.actor_id):
                continue
            try:
                await self._store.mark_read(message.id)
            except SyncError as exc:
                logger.warning("Could not mark message %d read: %s", message.id, exc)
                continue
            self._marked_read.add(message.id)
