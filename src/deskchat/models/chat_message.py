# src/deskchat/models/chat_message.py
"""Models describing direct and project chat messages."""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deskchat.db.session import Base
from deskchat.db.time import utcnow

from .project import Project
from .user import User

MESSAGE_TYPE_PRIVATE = "private"
MESSAGE_TYPE_GROUP = "group"


class ChatMessage(Base):
    """A message addressed either to one user or to a project team.

    The primary key doubles as the sync cursor: ids are issued in write
    order, so clients ask for ``id > cursor`` to receive only new messages.
    """

    __tablename__ = "chat_message"
    __table_args__ = (
        CheckConstraint(
            "(receiver_id IS NULL) <> (project_id IS NULL)",
            name="ck_chat_message_single_target",
        ),
        Index("ix_chat_message_receiver", "receiver_id", "id"),
        Index("ix_chat_message_project", "project_id", "id"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )

    sender_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_account.id"), nullable=False
    )
    receiver_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("user_account.id"), nullable=True
    )
    project_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False, default=MESSAGE_TYPE_PRIVATE)

    # Only meaningful for private messages; group chats carry no per-member read state.
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="joined")
    receiver: Mapped[User | None] = relationship(
        "User", foreign_keys=[receiver_id], lazy="joined"
    )
    project: Mapped[Project | None] = relationship("Project", lazy="joined")

    @property
    def is_read(self) -> bool:
        """Return True once the receiver has seen the message."""
        return self.read_at is not None
