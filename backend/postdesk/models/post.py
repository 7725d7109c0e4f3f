"""
PostDesk — Post SQLAlchemy Model
==================================

What:  ORM model for the `posts` table.
Who:   Used by PostRepository for CRUD and by Alembic for schema management.

Table Design:
    - id: integer autoincrement primary key; ids are never reused
    - title: VARCHAR(255), required
    - content: TEXT, required, unbounded
    - created_at / updated_at: UTC, timezone-aware, maintained on insert/update
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, Text, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column

from postdesk.database import Base

TITLE_MAX_LENGTH = 255


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """
    A blog post.

    Lifecycle:
        1. Created by the store action (id and timestamps assigned here)
        2. Title and content replaced in place by the update action
        3. Hard-deleted by the destroy action; no tombstone is kept
    """

    __tablename__ = "posts"

    # sqlite_autoincrement keeps SQLite from recycling the id of a deleted last row
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r})>"
