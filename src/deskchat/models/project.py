# src/deskchat/models/project.py
"""SQLAlchemy models for projects and their chat membership."""

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from deskchat.db.session import Base


class Project(Base):
    """Client project; every project owns one group conversation."""

    __tablename__ = "project"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    client_name: Mapped[str | None] = mapped_column(Text, nullable=True)


class ProjectMember(Base):
    """Join table mapping users into a project's team."""

    __tablename__ = "project_member"

    project_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("project.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True
    )
    # No timestamps; presence implies membership.
