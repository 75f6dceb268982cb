"""Immutable records exchanged between the store client and the sync engine.

A message belongs to exactly one conversation space, modeled as a tagged
variant: :class:`DirectTarget` (one counterpart user) or :class:`GroupTarget`
(a project team). Conversations derived from the store follow the same split
with :class:`DirectConversation` and :class:`GroupConversation`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class DirectTarget:
    """Direct addressing of one user.

    On a message this is the receiver; as a conversation target it is the
    counterpart the actor is chatting with.
    """

    user_id: int

    @property
    def key(self) -> str:
        return f"user-{self.user_id}"

    def as_params(self) -> dict[str, int]:
        """Store query/body parameters selecting this conversation."""
        return {"receiver_id": self.user_id}


@dataclass(frozen=True)
class GroupTarget:
    """Project-scoped team conversation."""

    project_id: int

    @property
    def key(self) -> str:
        return f"project-{self.project_id}"

    def as_params(self) -> dict[str, int]:
        """Store query/body parameters selecting this conversation."""
        return {"project_id": self.project_id}


ConversationTarget = Union[DirectTarget, GroupTarget]


@dataclass(frozen=True)
class Participant:
    """Display information for a user taking part in a chat."""

    id: int
    name: str
    email: str = ""
    role: str = ""


@dataclass(frozen=True)
class ProjectRef:
    """Display information for a project team chat."""

    id: int
    title: str
    client_name: str | None = None


@dataclass(frozen=True)
class Message:
    """A persisted chat message.

    ``id`` is assigned by the store in write order and is the only ordering
    and identity key the engine relies on; ``created_at`` may collide.
    """

    id: int
    sender_id: int
    target: ConversationTarget
    body: str
    created_at: datetime
    read_at: datetime | None = None
    sender: Participant | None = None

    @property
    def receiver_id(self) -> int | None:
        return self.target.user_id if isinstance(self.target, DirectTarget) else None

    @property
    def project_id(self) -> int | None:
        return self.target.project_id if isinstance(self.target, GroupTarget) else None

    @property
    def is_direct(self) -> bool:
        return isinstance(self.target, DirectTarget)

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def is_unread_for(self, actor_id: int) -> bool:
        """True when this is a direct message addressed to ``actor_id`` not yet read.

        Group messages carry no per-member read state and are never unread here.
        """
        if not isinstance(self.target, DirectTarget):
            return False
        return self.target.user_id == actor_id and self.read_at is None


@dataclass(frozen=True)
class DirectConversation:
    """Conversation summary with a single counterpart."""

    counterpart: Participant
    last_message: Message
    unread_count: int = 0

    @property
    def target(self) -> DirectTarget:
        return DirectTarget(self.counterpart.id)

    @property
    def key(self) -> str:
        return self.target.key

    @property
    def title(self) -> str:
        return self.counterpart.name


@dataclass(frozen=True)
class GroupConversation:
    """Conversation summary for a project team chat."""

    project: ProjectRef
    last_message: Message
    unread_count: int = 0

    @property
    def target(self) -> GroupTarget:
        return GroupTarget(self.project.id)

    @property
    def key(self) -> str:
        return self.target.key

    @property
    def title(self) -> str:
        return self.project.title


Conversation = Union[DirectConversation, GroupConversation]
