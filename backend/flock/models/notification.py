"""
Flock Backend — Notification SQLAlchemy Model
==============================================

What:  ORM model for the `notifications` table.
Why:   Users are told when someone follows them or likes one of their posts.
When:  Written as a side effect of the follow and like toggles (never on
       unfollow/unlike); marked read when the recipient lists them.
"""

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flock.database import Base
from flock.models.user import TimestampMixin, User


class NotificationType(str, enum.Enum):
    FOLLOW = "follow"
    LIKE = "like"


class Notification(TimestampMixin, Base):
    """A follow or like event addressed to `to_user_id`."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Stored as the enum's string value so the column stays a plain VARCHAR
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    from_user: Mapped[User] = relationship(User, foreign_keys=[from_user_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("type IN ('follow', 'like')", name="ck_notifications_type"),
        Index("idx_notifications_to_user", "to_user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type='{self.type}', "
            f"from={self.from_user_id}, to={self.to_user_id})>"
        )
