"""Parsing of message store JSON payloads into immutable records."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from .errors import NotFoundError
from .records import (
    Conversation,
    ConversationTarget,
    DirectConversation,
    DirectTarget,
    GroupConversation,
    GroupTarget,
    Message,
    Participant,
    ProjectRef,
)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp from the store; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_participant(payload: Mapping[str, Any] | None) -> Participant | None:
    """Build a participant from an embedded user summary."""
    if not payload:
        return None
    return Participant(
        id=int(payload["id"]),
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or ""),
    )


def parse_project(payload: Mapping[str, Any] | None) -> ProjectRef | None:
    """Build a project reference from an embedded project summary."""
    if not payload:
        return None
    return ProjectRef(
        id=int(payload["id"]),
        title=str(payload.get("title") or ""),
        client_name=payload.get("client_name"),
    )


def parse_message(payload: Mapping[str, Any]) -> Message:
    """Build a :class:`Message` from a store payload.

    Raises:
        ValueError: If the payload is not an object or names both or neither
            of receiver and project.
    """
    if not isinstance(payload, Mapping):
        raise ValueError(f"Expected a message object, got {type(payload).__name__}")
    receiver_id = payload.get("receiver_id")
    project_id = payload.get("project_id")
    if (receiver_id is None) == (project_id is None):
        raise ValueError(
            f"Message {payload.get('id')} must have exactly one of receiver_id or project_id"
        )
    target: ConversationTarget = (
        DirectTarget(int(receiver_id)) if receiver_id is not None else GroupTarget(int(project_id))
    )
    created_at = parse_timestamp(payload.get("created_at"))
    if created_at is None:
        raise ValueError(f"Message {payload.get('id')} has no created_at")
    return Message(
        id=int(payload["id"]),
        sender_id=int(payload["sender_id"]),
        target=target,
        body=str(payload["message"]),
        created_at=created_at,
        read_at=parse_timestamp(payload.get("read_at")),
        sender=parse_participant(payload.get("sender")),
    )


def parse_conversation(payload: Mapping[str, Any]) -> Conversation:
    """Build a conversation summary from a store payload.

    Raises:
        NotFoundError: If the counterpart or project reference is missing.
        ValueError: If the embedded last message is malformed.
    """
    last_message = parse_message(payload["last_message"])
    unread_count = int(payload.get("unread_count") or 0)
    is_project = payload.get("type") == "project" or payload.get("project") is not None

    if is_project:
        project = parse_project(payload.get("project"))
        if project is None:
            raise NotFoundError("Conversation project no longer exists")
        return GroupConversation(project=project, last_message=last_message, unread_count=unread_count)

    counterpart = parse_participant(payload.get("user"))
    if counterpart is None:
        raise NotFoundError("Conversation counterpart no longer exists")
    return DirectConversation(
        counterpart=counterpart, last_message=last_message, unread_count=unread_count
    )
