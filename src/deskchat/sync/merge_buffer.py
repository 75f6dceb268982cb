"""Ordered, deduplicated message list for the open conversation."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .records import Message

logger = logging.getLogger(__name__)


class MessageMergeBuffer:
    """Owns the canonical message list and cursor of one open conversation.

    Every merge filters the incoming batch down to unseen ids, appends them
    and re-sorts the whole list by id. The store gives no ordering guarantee
    on a batch and the list stays small, so a full sort is used instead of
    sorted insertion. The cursor is the highest merged id and only grows.
    """

    def __init__(self) -> None:
        self._messages: tuple[Message, ...] = ()
        self._ids: set[int] = set()
        self._cursor = 0

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def merge(self, batch: Iterable[Message]) -> tuple[Message, ...]:
        """Merge ``batch`` and return the full ordered list.

        Messages whose id is already present, including repeats within the
        batch itself, are dropped.
        """
        novel: list[Message] = []
        seen = set(self._ids)
        for message in batch:
            if message.id in seen:
                continue
            seen.add(message.id)
            novel.append(message)

        if not novel:
            return self._messages

        merged = sorted((*self._messages, *novel), key=lambda message: message.id)
        self._messages = tuple(merged)
        self._ids = seen
        self._cursor = max(self._cursor, merged[-1].id)
        logger.debug(
            "Merged %d new message(s); %d total, cursor=%d",
            len(novel),
            len(merged),
            self._cursor,
        )
        return self._messages

    def append_local(self, message: Message) -> tuple[Message, ...]:
        """Merge a message the actor just sent, as returned by the store.

        The store answers a send with the persisted record and its real id,
        so the same dedup path applies when a later poll returns it again.
        """
        return self.merge((message,))

    def reset(self) -> None:
        """Forget every message and rewind the cursor for a new conversation."""
        self._messages = ()
        self._ids = set()
        self._cursor = 0
