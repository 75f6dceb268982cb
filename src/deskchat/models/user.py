# src/deskchat/models/user.py
"""SQLAlchemy models for application users."""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from deskchat.db.session import Base


class User(Base):
    """Staff member or client account able to chat."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # admin, bd, developer, client ...
    role: Mapped[str] = mapped_column(Text, nullable=False, default="developer")
