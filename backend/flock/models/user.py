"""
Flock Backend — User SQLAlchemy Model
======================================

What:  ORM model for the `users` table plus the `follows` association table.
Why:   An identity is the anchor for every other record (posts, likes,
       comments, notifications).
Who:   Used by services for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: Non-sequential, safe to expose in URLs
    - username / email: UNIQUE constraints enforce the global uniqueness invariant
      even if two signups race past the service-level checks
    - password_hash: bcrypt output only; the plaintext never reaches the database
    - followers / following: both read from the single `follows` table, so the
      two lists can never disagree with each other
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flock.database import Base

if TYPE_CHECKING:
    from flock.models.post import Post


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Follow Graph ──────────────────────────────────────────────────────────
# One row per (follower → followee) edge. The composite primary key gives the
# follow toggle its set semantics: the same edge cannot exist twice.
follows = Table(
    "follows",
    Base.metadata,
    Column(
        "follower_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "followee_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class TimestampMixin:
    """created_at / updated_at columns shared by users, posts and notifications."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class User(TimestampMixin, Base):
    """
    A registered account.

    Relationship collections are `lazy="raise"`: async sessions cannot lazy
    load, so every query that needs them must ask for them explicitly with
    selectinload(). Forgetting to do so fails loudly instead of hanging on
    implicit IO.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)

    profile_img: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    cover_img: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    bio: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    link: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Users following this user
    followers: Mapped[List["User"]] = relationship(
        "User",
        secondary=follows,
        primaryjoin=lambda: User.id == follows.c.followee_id,
        secondaryjoin=lambda: User.id == follows.c.follower_id,
        viewonly=True,
        lazy="raise",
    )

    # Users this user follows
    following: Mapped[List["User"]] = relationship(
        "User",
        secondary=follows,
        primaryjoin=lambda: User.id == follows.c.follower_id,
        secondaryjoin=lambda: User.id == follows.c.followee_id,
        viewonly=True,
        lazy="raise",
    )

    liked_posts: Mapped[List["Post"]] = relationship(
        "Post",
        secondary="post_likes",
        viewonly=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
