"""Incremental message synchronization and conversation aggregation."""

from .aggregator import ConversationAggregator, rank_conversations
from .errors import AccessDeniedError, NotFoundError, SyncError, TransportError, ValidationError
from .fetch import ConversationFetchClient
from .merge_buffer import MessageMergeBuffer
from .observable import Observable
from .poller import PollScheduler, PollState
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
from .session import ChatSession
from .unread import UnreadCounterChannel

__all__ = [
    "ChatSession",
    "ConversationAggregator", "rank_conversations",
    "ConversationFetchClient",
    "MessageMergeBuffer",
    "Observable",
    "PollScheduler", "PollState",
    "UnreadCounterChannel",
    "Conversation", "ConversationTarget",
    "DirectConversation", "GroupConversation",
    "DirectTarget", "GroupTarget",
    "Message", "Participant", "ProjectRef",
    "AccessDeniedError", "NotFoundError", "SyncError", "TransportError", "ValidationError",
]
