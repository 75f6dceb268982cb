# src/deskchat/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .chat import (
    ChatMessageCreate,
    ChatMessageResponse,
    ConversationResponse,
    UnreadCountResponse,
)
from .notification import NotificationResponse
from .user import ProjectSummary, UserSummary

__all__ = [
    "ChatMessageCreate", "ChatMessageResponse",
    "ConversationResponse", "UnreadCountResponse",
    "NotificationResponse",
    "ProjectSummary", "UserSummary",
]
