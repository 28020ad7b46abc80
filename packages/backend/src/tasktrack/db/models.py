"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table.

Key concepts:
- UUID primary keys (opaque identifiers, never guessable sequence numbers)
- Portable column types (Uuid, String, Boolean) so the same models run on
  Postgres in production and SQLite in tests
- The active-session list is a child table, ordered by insertion id, so
  adding or removing one session is a single-row statement rather than a
  rewrite of the whole list
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

NO_AVATAR = "no-profile"


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A principal. Owns tasks and a list of active sessions.

    Learn: email is stored normalized (trimmed, lower-cased) so the unique
    constraint is effectively case-insensitive.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Storage keys of the three avatar renditions, or NO_AVATAR
    avatar_original: Mapped[str] = mapped_column(
        String(500), nullable=False, default=NO_AVATAR
    )
    avatar_small: Mapped[str] = mapped_column(
        String(500), nullable=False, default=NO_AVATAR
    )
    avatar_large: Mapped[str] = mapped_column(
        String(500), nullable=False, default=NO_AVATAR
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    sessions: Mapped[list["UserSession"]] = relationship(
        back_populates="user",
        order_by="UserSession.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def avatar_paths(self) -> dict[str, str]:
        return {
            "original": self.avatar_original,
            "small": self.avatar_small,
            "large": self.avatar_large,
        }


class UserSession(Base):
    """One entry of a user's active-session list.

    Learn: A bearer token authenticates only while its row exists here.
    Logging out deletes the row; the token's signature stays valid but it
    no longer matches any session, which is how revocation works without
    short expiries. The unique constraint keeps a token bound to one user.
    """

    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("ix_user_sessions_user_token", "user_id", "token"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="sessions")


class Task(Base):
    """A task owned by exactly one user.

    Learn: owner_id is set at creation and never updated. Every query in
    store/tasks.py filters on it.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
