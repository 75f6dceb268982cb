# src/deskchat/schemas/chat.py
"""Chat-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .user import ProjectSummary, UserSummary


class ChatMessageCreate(BaseModel):
    """Schema for sending a message to a user or to a project team."""

    message: str = Field(..., description="Message text; must not be blank")
    receiver_id: int | None = Field(None, description="Recipient of a direct message")
    project_id: int | None = Field(None, description="Project whose team receives the message")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        """Reject messages that are empty once whitespace is stripped."""
        if not value.strip():
            raise ValueError("Message body must not be empty")
        return value

    @model_validator(mode="after")
    def exactly_one_target(self) -> "ChatMessageCreate":
        """A message belongs to exactly one conversation space."""
        if (self.receiver_id is None) == (self.project_id is None):
            raise ValueError("Provide exactly one of receiver_id or project_id")
        return self


class ChatMessageResponse(BaseModel):
    """Schema for chat messages returned by the API."""

    id: int
    sender_id: int
    receiver_id: int | None
    project_id: int | None
    message: str
    type: Literal["private", "group"]
    is_read: bool
    read_at: datetime | None
    created_at: datetime
    sender: UserSummary | None = None
    receiver: UserSummary | None = None
    project: ProjectSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    """Summary of one conversation for the conversation list."""

    type: Literal["private", "project"]
    user: UserSummary | None = None
    project: ProjectSummary | None = None
    last_message: ChatMessageResponse
    unread_count: int
    last_message_time: datetime


class UnreadCountResponse(BaseModel):
    """Scalar unread counter."""

    count: int
