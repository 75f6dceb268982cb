# src/deskchat/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .chat import router as chat_router
from .notifications import router as notifications_router

__all__ = [
    "chat_router",
    "notifications_router",
]
