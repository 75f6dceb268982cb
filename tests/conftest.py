# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from deskchat.core.security import create_access_token
from deskchat.db.session import Base
from deskchat.db.session import get_db as app_get_session
from deskchat.db.time import utcnow
from deskchat.main import app as fastapi_app
from deskchat.models import (
    MESSAGE_TYPE_GROUP,
    MESSAGE_TYPE_PRIVATE,
    ChatMessage,
    Notification,
    Project,
    ProjectMember,
    User,
)

TEST_DB_URL = "sqlite://"

_EMAIL_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users."""

    def _make_user(name: str = "User", role: str = "developer") -> User:
        user = User(name=name, email=f"user{next(_EMAIL_COUNTER)}@example.com", role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user("Test User")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user("Other User")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture()
def project(db_session: Session, test_user: User, other_user: User) -> Project:
    """Create a project whose team holds both test users."""
    project = Project(title="Website Revamp", client_name="Acme")
    db_session.add(project)
    db_session.flush()
    db_session.add_all([
        ProjectMember(project_id=project.id, user_id=test_user.id),
        ProjectMember(project_id=project.id, user_id=other_user.id),
    ])
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture()
def add_message(db_session: Session) -> Callable[..., ChatMessage]:
    """Return a factory that persists chat messages directly in the store."""

    def _add_message(
        sender: User,
        body: str = "hello",
        *,
        receiver: User | None = None,
        project: Project | None = None,
        created_at: datetime | None = None,
        read: bool = False,
    ) -> ChatMessage:
        message = ChatMessage(
            sender_id=sender.id,
            receiver_id=receiver.id if receiver else None,
            project_id=project.id if project else None,
            message=body,
            type=MESSAGE_TYPE_GROUP if project else MESSAGE_TYPE_PRIVATE,
            created_at=created_at or utcnow(),
            read_at=utcnow() if read else None,
        )
        db_session.add(message)
        db_session.commit()
        db_session.refresh(message)
        return message

    return _add_message


@pytest.fixture()
def add_notification(db_session: Session) -> Callable[..., Notification]:
    """Return a factory that persists notifications."""

    def _add_notification(user: User, *, read: bool = False) -> Notification:
        notification = Notification(
            user_id=user.id,
            data={"task_title": "Review PR"},
            read_at=utcnow() if read else None,
        )
        db_session.add(notification)
        db_session.commit()
        db_session.refresh(notification)
        return notification

    return _add_notification


@pytest.fixture()
def base_time() -> datetime:
    """A fixed point in time for ordering assertions."""
    return datetime(2024, 5, 1, 9, 0, 0)


@pytest.fixture()
def minutes() -> Callable[[int], timedelta]:
    return lambda value: timedelta(minutes=value)
