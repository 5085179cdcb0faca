"""
Flock Backend — User Route Handlers
====================================

What:  Profiles, follow toggle, suggestions and profile updates under /api/users.
Who:   Called by the frontend profile page, the "who to follow" panel and the
       edit-profile dialog. Every endpoint requires a session.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flock.database import get_db_session
from flock.dependencies import get_current_user
from flock.models import User
from flock.schemas.common import ErrorResponse, MessageResponse
from flock.schemas.user import UpdateProfileRequest, UserResponse, UserSummary
from flock.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "No or invalid session", "model": ErrorResponse}},
)


@router.get(
    "/profile/{username}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="A user's profile",
)
async def get_user_profile(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_profile(db, username)


@router.get(
    "/suggested",
    response_model=List[UserSummary],
    summary="Up to four accounts the current user does not follow yet",
)
async def get_suggested_users(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserSummary]:
    return await user_service.suggested_users(db, user)


@router.post(
    "/follow/{user_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Cannot follow yourself", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Follow or unfollow a user",
)
async def follow_unfollow_user(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await user_service.toggle_follow(db, user, user_id)


@router.post(
    "/update",
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid field, taken username/email or bad image", "model": ErrorResponse},
        401: {"description": "Current password is incorrect", "model": ErrorResponse},
    },
    summary="Update the current user's profile",
)
async def update_user(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_profile(db, user, body)
