# src/deskchat/models/__init__.py
"""SQLAlchemy models for the deskchat message store."""

from .chat_message import MESSAGE_TYPE_GROUP, MESSAGE_TYPE_PRIVATE, ChatMessage
from .notification import Notification
from .project import Project, ProjectMember
from .user import User

__all__ = [
    "ChatMessage", "MESSAGE_TYPE_GROUP", "MESSAGE_TYPE_PRIVATE",
    "Notification",
    "Project", "ProjectMember",
    "User",
]
