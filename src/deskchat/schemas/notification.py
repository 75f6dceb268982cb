# src/deskchat/schemas/notification.py
"""Notification Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """Schema for a notification returned by the API."""

    id: int
    type: str
    data: dict[str, Any]
    read_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
