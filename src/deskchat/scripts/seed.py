"""Create demo users, a project team and a few notifications.

Prints one bearer token per user so ``tail_chat`` can act as them.
"""
from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from deskchat.core.security import create_access_token
from deskchat.db.session import SessionLocal, create_tables
from deskchat.models import Notification, Project, ProjectMember, User

DEMO_USERS = (
    ("Ada Admin", "ada@example.com", "admin"),
    ("Dev Dana", "dana@example.com", "developer"),
    ("Client Cole", "cole@example.com", "client"),
)


def seed(db: Session, project_title: str) -> list[User]:
    """Insert demo rows unless a user with the same email already exists.

    Args:
        db: Database session
        project_title: Title of the project whose team chat is created

    Returns:
        The demo users, persisted
    """
    users: list[User] = []
    for name, email, role in DEMO_USERS:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(name=name, email=email, role=role)
            db.add(user)
            db.flush()
        users.append(user)

    project = db.query(Project).filter(Project.title == project_title).first()
    if project is None:
        project = Project(title=project_title, client_name=users[-1].name)
        db.add(project)
        db.flush()
        for user in users:
            db.add(ProjectMember(project_id=project.id, user_id=user.id))
        db.add(
            Notification(
                user_id=users[1].id,
                data={"task_title": f"Kick-off for {project_title}", "project_id": project.id},
            )
        )

    db.commit()
    return users


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the deskchat store with demo data")
    parser.add_argument("--project", default="Website Revamp", help="Demo project title")
    args = parser.parse_args()

    create_tables()
    db = SessionLocal()
    try:
        users = seed(db, args.project)
        for user in users:
            print(f"{user.id}\t{user.email}\t{create_access_token(user.id)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
