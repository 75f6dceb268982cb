"""Cursor-bounded fetches for one conversation target."""

from __future__ import annotations

import logging
from typing import Protocol

from .errors import NotFoundError
from .records import ConversationTarget, GroupTarget, Message

logger = logging.getLogger(__name__)


class MessageSource(Protocol):
    """The part of the message store the fetch client needs."""

    async def fetch_messages(self, target: ConversationTarget, since_id: int = 0) -> list[Message]:
        ...


class ConversationFetchClient:
    """Ask the store for messages newer than a cursor.

    The store may return the batch in any order and may repeat messages the
    caller already holds; the merge buffer handles both. A target that no
    longer exists yields an empty batch. Transport failures propagate so the
    poll scheduler can log them and retry on its next tick.
    """

    def __init__(self, source: MessageSource) -> None:
        self._source = source

    async def fetch(self, target: ConversationTarget, cursor: int) -> list[Message]:
        if cursor < 0:
            raise ValueError("Cursor must not be negative")
        try:
            batch = await self._source.fetch_messages(target, cursor)
        except NotFoundError:
            logger.info("Conversation %s no longer exists; treating as empty", target.key)
            return []
        # Stray messages from another conversation must never reach the buffer.
        return [message for message in batch if _belongs_to(message, target)]


def _belongs_to(message: Message, target: ConversationTarget) -> bool:
    if isinstance(target, GroupTarget):
        return message.target == target
    # A direct message is addressed to either side of the pair.
    return message.target == target or (message.is_direct and message.sender_id == target.user_id)
