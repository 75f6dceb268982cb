# src/deskchat/api/v1/endpoints/chat.py
"""Chat endpoints: the message store consumed by the sync engine."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from deskchat.core.settings import settings
from deskchat.db.time import utcnow
from deskchat.models import (
    MESSAGE_TYPE_GROUP,
    MESSAGE_TYPE_PRIVATE,
    ChatMessage,
    Project,
    ProjectMember,
    User,
)
from deskchat.schemas.chat import ChatMessageCreate, ChatMessageResponse, ConversationResponse
from deskchat.schemas.user import ProjectSummary, UserSummary

from ..dependencies import CurrentUserDep, SessionDep

ROLE_ADMIN = "admin"

router = APIRouter(prefix="/chat", tags=["chat"])


def _visible_project_ids(db: Session, user: User) -> list[int]:
    """Return ids of projects whose team chat ``user`` may read and post to."""
    if user.role == ROLE_ADMIN:
        return [row[0] for row in db.query(Project.id).all()]
    return [
        row[0]
        for row in db.query(ProjectMember.project_id)
        .filter(ProjectMember.user_id == user.id)
        .all()
    ]


def _require_project(db: Session, user: User, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    if project.id not in _visible_project_ids(db, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this project",
        )
    return project


def _require_counterpart(db: Session, user: User, receiver_id: int) -> User:
    receiver = db.get(User, receiver_id)
    if receiver is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recipient not found",
        )
    if receiver.id == user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot message yourself",
        )
    return receiver


@router.get("/users", response_model=list[UserSummary])
async def list_chat_users(current_user: CurrentUserDep, db: SessionDep) -> list[User]:
    """List every other user the current user can start a direct chat with."""
    return (
        db.query(User)
        .filter(User.id != current_user.id)
        .order_by(User.name)
        .all()
    )


@router.get("/project-chats", response_model=list[ProjectSummary])
async def list_project_chats(current_user: CurrentUserDep, db: SessionDep) -> list[Project]:
    """List projects whose team chat the current user belongs to."""
    project_ids = _visible_project_ids(db, current_user)
    if not project_ids:
        return []
    return (
        db.query(Project)
        .filter(Project.id.in_(project_ids))
        .order_by(Project.title)
        .all()
    )


@router.get("/messages", response_model=list[ChatMessageResponse])
async def get_messages(
    current_user: CurrentUserDep,
    db: SessionDep,
    receiver_id: int | None = Query(None, description="Direct chat counterpart"),
    project_id: int | None = Query(None, description="Project team chat"),
    last_message_id: int = Query(0, ge=0, description="Return messages with a greater id"),
) -> list[ChatMessage]:
    """Return messages newer than ``last_message_id`` for one conversation.

    Exactly one of ``receiver_id`` or ``project_id`` selects the conversation.
    Results are ordered by id, but clients must not depend on it.
    """
    if (receiver_id is None) == (project_id is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide exactly one of receiver_id or project_id",
        )

    query = db.query(ChatMessage).filter(ChatMessage.id > last_message_id)

    if receiver_id is not None:
        counterpart = _require_counterpart(db, current_user, receiver_id)
        query = query.filter(
            ChatMessage.project_id.is_(None),
            or_(
                (ChatMessage.sender_id == current_user.id)
                & (ChatMessage.receiver_id == counterpart.id),
                (ChatMessage.sender_id == counterpart.id)
                & (ChatMessage.receiver_id == current_user.id),
            ),
        )
    else:
        project = _require_project(db, current_user, project_id)
        query = query.filter(ChatMessage.project_id == project.id)

    return query.order_by(ChatMessage.id).limit(settings.messages_page_limit).all()


@router.post("/send", status_code=status.HTTP_201_CREATED, response_model=ChatMessageResponse)
async def send_message(
    message_data: ChatMessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ChatMessage:
    """Persist a message and return it with its assigned id and timestamp."""
    if message_data.receiver_id is not None:
        receiver = _require_counterpart(db, current_user, message_data.receiver_id)
        new_message = ChatMessage(
            sender_id=current_user.id,
            receiver_id=receiver.id,
            message=message_data.message,
            type=MESSAGE_TYPE_PRIVATE,
        )
    else:
        project = _require_project(db, current_user, message_data.project_id)
        new_message = ChatMessage(
            sender_id=current_user.id,
            project_id=project.id,
            message=message_data.message,
            type=MESSAGE_TYPE_GROUP,
        )

    db.add(new_message)
    db.commit()
    db.refresh(new_message)
    return new_message


@router.post("/messages/{message_id}/read")
async def mark_message_read(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Mark a direct message addressed to the current user as read."""
    message = (
        db.query(ChatMessage)
        .filter(
            ChatMessage.id == message_id,
            ChatMessage.receiver_id == current_user.id,
        )
        .first()
    )

    if message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found",
        )

    if message.read_at is None:
        message.read_at = utcnow()
        db.commit()

    return {"status": "marked_as_read"}


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(current_user: CurrentUserDep, db: SessionDep) -> list[dict[str, Any]]:
    """Summarize every conversation the current user takes part in.

    Direct conversations are keyed by counterpart and carry the number of
    unread messages addressed to the current user. Project conversations
    report zero unread: group chats keep no per-member read state.
    Conversations whose counterpart or project no longer exists are still
    reported, with the missing reference left null.
    """
    me = current_user.id
    counterpart_id = case(
        (ChatMessage.sender_id == me, ChatMessage.receiver_id),
        else_=ChatMessage.sender_id,
    ).label("counterpart_id")

    direct_rows = (
        db.query(counterpart_id, func.max(ChatMessage.id))
        .filter(
            ChatMessage.project_id.is_(None),
            or_(ChatMessage.sender_id == me, ChatMessage.receiver_id == me),
        )
        .group_by(counterpart_id)
        .all()
    )

    project_ids = _visible_project_ids(db, current_user)
    group_rows = []
    if project_ids:
        group_rows = (
            db.query(ChatMessage.project_id, func.max(ChatMessage.id))
            .filter(ChatMessage.project_id.in_(project_ids))
            .group_by(ChatMessage.project_id)
            .all()
        )

    last_ids = [row[1] for row in direct_rows] + [row[1] for row in group_rows]
    if not last_ids:
        return []

    last_messages = {
        message.id: message
        for message in db.query(ChatMessage).filter(ChatMessage.id.in_(last_ids)).all()
    }
    unread_by_sender = dict(
        db.query(ChatMessage.sender_id, func.count(ChatMessage.id))
        .filter(ChatMessage.receiver_id == me, ChatMessage.read_at.is_(None))
        .group_by(ChatMessage.sender_id)
        .all()
    )

    conversations: list[dict[str, Any]] = []
    for other_id, last_id in direct_rows:
        last_message = last_messages[last_id]
        counterpart = db.get(User, other_id)
        conversations.append({
            "type": "private",
            "user": UserSummary.model_validate(counterpart) if counterpart else None,
            "project": None,
            "last_message": ChatMessageResponse.model_validate(last_message),
            "unread_count": unread_by_sender.get(other_id, 0),
            "last_message_time": last_message.created_at,
        })

    for project_id, last_id in group_rows:
        last_message = last_messages[last_id]
        project = db.get(Project, project_id)
        conversations.append({
            "type": "project",
            "user": None,
            "project": ProjectSummary.model_validate(project) if project else None,
            "last_message": ChatMessageResponse.model_validate(last_message),
            "unread_count": 0,
            "last_message_time": last_message.created_at,
        })

    conversations.sort(
        key=lambda item: (item["last_message_time"], item["last_message"].id),
        reverse=True,
    )
    return conversations

