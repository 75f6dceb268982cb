# src/deskchat/api/v1/endpoints/notifications.py
"""Notification endpoints backing the unread badge."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import desc, func

from deskchat.db.time import utcnow
from deskchat.models import Notification
from deskchat.schemas.chat import UnreadCountResponse
from deskchat.schemas.notification import NotificationResponse

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(50, le=100),
) -> list[Notification]:
    """Return the current user's most recent notifications."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(desc(Notification.id))
        .limit(limit)
        .all()
    )


@router.get("/unread", response_model=UnreadCountResponse)
async def get_unread_count(current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    """Return how many of the current user's notifications are unread."""
    count = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == current_user.id, Notification.read_at.is_(None))
        .scalar()
    )
    return {"count": int(count or 0)}


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Mark a single notification as read."""
    notification = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
        .first()
    )
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )

    if notification.read_at is None:
        notification.read_at = utcnow()
        db.commit()

    return {"status": "marked_as_read"}


@router.post("/read-all")
async def mark_all_notifications_read(current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    """Mark every unread notification of the current user as read."""
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.read_at.is_(None))
        .update({Notification.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return {"updated": updated}
