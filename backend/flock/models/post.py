"""
Flock Backend — Post and Comment SQLAlchemy Models
===================================================

What:  ORM models for `posts`, `comments`, and the `post_likes` association table.
Why:   Posts are the main content of the feed; likes and comments hang off them.

Table Design Rationale:
    - text / img both nullable, but a CHECK constraint requires at least one
      (a post with neither is meaningless)
    - img stores the URL returned by the image host; the public id used to
      destroy the image is derived from the URL's last path segment
    - post_likes composite primary key: a user can like a post at most once,
      so the like toggle is a set membership flip
    - ON DELETE CASCADE on comments and likes: deleting a post removes its
      dependents in the same statement

Index on created_at DESC:
    Every list endpoint returns newest-first.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flock.database import Base
from flock.models.user import TimestampMixin, User, utcnow


post_likes = Table(
    "post_likes",
    Base.metadata,
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "post_id",
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class Post(TimestampMixin, Base):
    """A post authored by one user, optionally carrying an image."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    img: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    user: Mapped[User] = relationship(User, lazy="raise")

    likes: Mapped[List[User]] = relationship(
        User,
        secondary=post_likes,
        viewonly=True,
        lazy="raise",
    )

    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="post",
        order_by="Comment.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("text IS NOT NULL OR img IS NOT NULL", name="ck_posts_text_or_img"),
        Index("idx_posts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, user_id={self.user_id})>"


class Comment(Base):
    """A comment on a post. Comments are append-only."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    post: Mapped[Post] = relationship(Post, back_populates="comments", lazy="raise")
    user: Mapped[User] = relationship(User, lazy="raise")
