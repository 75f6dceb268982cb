"""Ranked conversation list across direct and project chats."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from .errors import NotFoundError
from .observable import Observable
from .payloads import parse_conversation
from .poller import PollScheduler
from .records import Conversation, DirectConversation

logger = logging.getLogger(__name__)


class ConversationSource(Protocol):
    """The part of the message store the aggregator needs."""

    async def list_conversation_payloads(self) -> list[Mapping[str, Any]]:
        ...


def rank_conversations(conversations: list[Conversation]) -> tuple[Conversation, ...]:
    """Order conversations by most recent activity first.

    Timestamps can collide, so the last message id breaks ties.
    """
    return tuple(
        sorted(
            conversations,
            key=lambda conv: (conv.last_message.created_at, conv.last_message.id),
            reverse=True,
        )
    )


class ConversationAggregator:
    """Builds the conversation list shown outside of any open conversation.

    The list is owned here and always replaced wholesale; it is never shared
    with the merge buffer of an open conversation.
    """

    def __init__(self, source: ConversationSource, actor_id: int) -> None:
        self._source = source
        self.actor_id = actor_id
        self.conversations: Observable[tuple[Conversation, ...]] = Observable(
            (), name="conversations"
        )
        self._refresh_loop: PollScheduler[tuple[Conversation, ...]] | None = None

    async def list_conversations(self) -> tuple[Conversation, ...]:
        """Query the store and return the ranked conversations of the actor.

        Entries whose counterpart or project is gone, or that cannot be
        parsed, are dropped instead of failing the whole list.
        """
        payloads = await self._source.list_conversation_payloads()
        conversations: list[Conversation] = []
        for payload in payloads:
            try:
                conversation = parse_conversation(payload)
            except NotFoundError as exc:
                logger.debug("Skipping conversation: %s", exc)
                continue
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed conversation entry: %s", exc)
                continue
            if (
                isinstance(conversation, DirectConversation)
                and conversation.counterpart.id == self.actor_id
            ):
                continue
            conversations.append(conversation)
        return rank_conversations(conversations)

    async def refresh(self) -> tuple[Conversation, ...]:
        """Re-query and publish the list; on failure keep the previous one."""
        try:
            ranked = await self.list_conversations()
        except Exception as exc:
            logger.warning("Conversation list refresh failed: %s", exc)
            return self.conversations.value
        self.conversations.set(ranked)
        return ranked

    def find(self, key: str) -> Conversation | None:
        """Return the conversation with ``key`` from the current list."""
        for conversation in self.conversations.value:
            if conversation.key == key:
                return conversation
        return None

    @property
    def total_unread(self) -> int:
        return sum(conversation.unread_count for conversation in self.conversations.value)

    def start_refresh_loop(self, interval: float) -> None:
        """Refresh on a slow independent cadence to catch conversations started by others."""
        if self._refresh_loop is not None:
            return
        self._refresh_loop = PollScheduler(
            self.list_conversations,
            self.conversations.set,
            interval,
            name="conversations",
        )
        self._refresh_loop.start()

    async def stop_refresh_loop(self) -> None:
        if self._refresh_loop is None:
            return
        await self._refresh_loop.stop()
        self._refresh_loop = None
