# src/deskchat/schemas/user.py
"""User and project summary schemas embedded in chat payloads."""

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Public identity of a chat participant."""

    id: int
    name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class ProjectSummary(BaseModel):
    """Project reference used by group conversations."""

    id: int
    title: str
    client_name: str | None = None

    model_config = ConfigDict(from_attributes=True)
