"""
Flock Backend — Notification Route Handlers
============================================

What:  GET /api/notifications (and mark read), DELETE all, DELETE one.
Who:   Called by the frontend notifications page.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flock.database import get_db_session
from flock.dependencies import get_current_user
from flock.models import User
from flock.schemas.common import ErrorResponse, MessageResponse
from flock.schemas.notification import NotificationResponse
from flock.services.notification_service import notification_service

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
    responses={401: {"description": "No or invalid session", "model": ErrorResponse}},
)


@router.get(
    "",
    response_model=List[NotificationResponse],
    summary="The current user's notifications, newest first",
    description="Listing marks every notification as read.",
)
async def get_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    return await notification_service.list_notifications(db, user)


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Delete all of the current user's notifications",
)
async def delete_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await notification_service.delete_notifications(db, user)


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Delete one notification",
)
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await notification_service.delete_notification(db, user, notification_id)
