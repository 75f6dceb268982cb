# tests/sync/conftest.py
"""Fixtures for sync engine tests: an in-process message store and helpers."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from deskchat.sync import ConversationTarget, GroupTarget, Message, Observable, Participant

ACTOR_ID = 1
BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


class FakeStore:
    """Message store double holding per-conversation threads in memory."""

    def __init__(self, actor_id: int = ACTOR_ID) -> None:
        self.actor_id = actor_id
        self.threads: dict[str, list[Message]] = defaultdict(list)
        self.conversation_payloads: list[Mapping[str, Any]] = []
        self.unread = 0
        self.fetch_calls: list[tuple[str, int]] = []
        self.sent: list[tuple[str, str]] = []
        self.marked: list[int] = []
        self.conversation_calls = 0
        self.unread_calls = 0
        self.fetch_error: Exception | None = None
        self.send_error: Exception | None = None
        self.mark_error: Exception | None = None
        self.conversations_error: Exception | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.send_gate: asyncio.Event | None = None
        self._next_id = 1

    def post(self, target: ConversationTarget, message: Message) -> Message:
        """Make ``message`` visible to fetches of ``target``."""
        self.threads[target.key].append(message)
        self._next_id = max(self._next_id, message.id + 1)
        return message

    async def fetch_messages(self, target: ConversationTarget, since_id: int = 0) -> list[Message]:
        self.fetch_calls.append((target.key, since_id))
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return [message for message in self.threads[target.key] if message.id > since_id]

    async def send_message(self, body: str, target: ConversationTarget) -> Message:
        self.sent.append((target.key, body))
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error is not None:
            raise self.send_error
        message = Message(
            id=self._next_id,
            sender_id=self.actor_id,
            target=target,
            body=body,
            created_at=BASE_TIME + timedelta(minutes=self._next_id),
        )
        return self.post(target, message)

    async def mark_read(self, message_id: int) -> None:
        if self.mark_error is not None:
            raise self.mark_error
        self.marked.append(message_id)

    async def list_conversation_payloads(self) -> list[Mapping[str, Any]]:
        self.conversation_calls += 1
        if self.conversations_error is not None:
            raise self.conversations_error
        return list(self.conversation_payloads)

    async def unread_count(self) -> int:
        self.unread_calls += 1
        return self.unread


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def make_message() -> Callable[..., Message]:
    """Return a factory for message records."""

    def _make_message(
        message_id: int,
        *,
        target: ConversationTarget | None = None,
        sender_id: int = 2,
        body: str | None = None,
        created_at: datetime | None = None,
        read_at: datetime | None = None,
    ) -> Message:
        return Message(
            id=message_id,
            sender_id=sender_id,
            target=target if target is not None else GroupTarget(10),
            body=body if body is not None else f"message {message_id}",
            created_at=created_at or BASE_TIME + timedelta(minutes=message_id),
            read_at=read_at,
            sender=Participant(id=sender_id, name=f"User {sender_id}"),
        )

    return _make_message


@pytest.fixture()
def message_payload() -> Callable[..., dict[str, Any]]:
    """Return a factory for store JSON message payloads."""

    def _message_payload(
        message_id: int,
        *,
        sender_id: int = 2,
        receiver_id: int | None = ACTOR_ID,
        project_id: int | None = None,
        created_at: str | None = None,
        read_at: str | None = None,
    ) -> dict[str, Any]:
        return {
            "id": message_id,
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "project_id": project_id,
            "message": f"message {message_id}",
            "type": "group" if project_id is not None else "private",
            "is_read": read_at is not None,
            "read_at": read_at,
            "created_at": created_at or f"2024-05-01T09:{message_id % 60:02d}:00",
            "sender": {"id": sender_id, "name": f"User {sender_id}", "email": "", "role": ""},
        }

    return _message_payload


@pytest.fixture()
def wait_for_value() -> Callable[..., Awaitable[Any]]:
    """Return a coroutine that waits until an observable holds a matching value."""

    async def _wait_for_value(
        observable: Observable[Any],
        predicate: Callable[[Any], bool],
        timeout: float = 2.0,
    ) -> Any:
        ready = asyncio.Event()

        def _check(value: Any) -> None:
            if predicate(value):
                ready.set()

        unsubscribe = observable.subscribe(_check)
        try:
            await asyncio.wait_for(ready.wait(), timeout)
        finally:
            unsubscribe()
        return observable.value

    return _wait_for_value


@pytest.fixture()
def eventually() -> Callable[..., Awaitable[None]]:
    """Return a coroutine that polls ``predicate`` until it holds."""

    async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return _eventually
