"""
Flock Backend — Notification Service
=====================================

What:  The recipient's view of follow/like notifications.
Who:   Called by the /api/notifications route handlers. Notifications are
       written by UserService.toggle_follow and PostService.toggle_like.

Listing marks everything read: the returned list still shows the read state
each notification had before this call, so the client can highlight new ones.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flock.exceptions import DatabaseError, NotFoundError, UnauthorizedError
from flock.models import Notification, User
from flock.schemas.common import MessageResponse
from flock.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)


class NotificationService:

    async def list_notifications(
        self, db: AsyncSession, user: User
    ) -> List[NotificationResponse]:
        stmt = (
            select(Notification)
            .where(Notification.to_user_id == user.id)
            .options(selectinload(Notification.from_user))
            .order_by(Notification.created_at.desc())
            .execution_options(populate_existing=True)
        )
        notifications = [
            NotificationResponse.model_validate(n) for n in await db.scalars(stmt)
        ]

        try:
            await db.execute(
                update(Notification)
                .where(Notification.to_user_id == user.id, Notification.read.is_(False))
                .values(read=True)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error marking notifications read for %s: %s", user.id, str(e))
            raise DatabaseError(context={"user_id": str(user.id)})

        return notifications

    async def delete_notifications(self, db: AsyncSession, user: User) -> MessageResponse:
        try:
            result = await db.execute(
                delete(Notification).where(Notification.to_user_id == user.id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting notifications for %s: %s", user.id, str(e))
            raise DatabaseError(context={"user_id": str(user.id)})

        logger.info("Deleted %d notifications for %s", result.rowcount, user.username)
        return MessageResponse(message="Notifications deleted successfully")

    async def delete_notification(
        self, db: AsyncSession, user: User, notification_id: uuid.UUID
    ) -> MessageResponse:
        """
        Raises:
            NotFoundError: No such notification (404).
            UnauthorizedError: It was addressed to someone else (401).
        """
        notification = await db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        if notification.to_user_id != user.id:
            raise UnauthorizedError(
                "You are not allowed to delete this notification",
                context={"notification_id": str(notification_id)},
            )

        try:
            await db.delete(notification)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting notification %s: %s", notification_id, str(e))
            raise DatabaseError(context={"notification_id": str(notification_id)})

        return MessageResponse(message="Notification deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
