"""
Flock Backend — Post Route Handlers
====================================

What:  The /api/posts endpoints: four feeds, create, like, comment, delete.
Who:   Called by the frontend feed, profile and post components.

Every endpoint requires a session (the router-level dependency runs
get_current_user before any handler).

Route order matters: the fixed paths (/all, /following) are declared before
the parameterized ones so "/all" is never read as a post id.
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
from flock.schemas.post import CommentRequest, CreatePostRequest, PostResponse
from flock.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/posts",
    tags=["Posts"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "No or invalid session", "model": ErrorResponse}},
)


# ══════════════════════════════════════════════════════════════════════════
# Feeds
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/all",
    response_model=List[PostResponse],
    responses={404: {"description": "No posts found", "model": ErrorResponse}},
    summary="Every post, newest first",
)
async def get_all_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    return await post_service.list_all_posts(db)


@router.get(
    "/following",
    response_model=List[PostResponse],
    summary="Posts by accounts the current user follows, newest first",
)
async def get_following_posts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_following_posts(db, user)


@router.get(
    "/likes/{user_id}",
    response_model=List[PostResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Posts liked by a user, newest first",
)
async def get_liked_posts(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_liked_posts(db, user_id)


@router.get(
    "/user/{username}",
    response_model=List[PostResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Posts by one user, newest first",
)
async def get_user_posts(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_user_posts(db, username)


# ══════════════════════════════════════════════════════════════════════════
# Writes
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/create",
    status_code=201,
    response_model=PostResponse,
    responses={400: {"description": "No text or image, or an invalid image", "model": ErrorResponse}},
    summary="Create a post",
    description="`img` is a base64 data URL (data:image/png;base64,...).",
)
async def create_post(
    body: CreatePostRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.create_post(db, user, text=body.text, img=body.img)


@router.post(
    "/like/{post_id}",
    response_model=List[UUID],
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Like or unlike a post",
    description="Returns the ids of everyone who likes the post after the toggle.",
)
async def like_unlike_post(
    post_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UUID]:
    return await post_service.toggle_like(db, user, post_id)


@router.post(
    "/comment/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Empty comment", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Comment on a post",
)
async def comment_on_post(
    post_id: UUID,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.comment_on_post(db, user, post_id, text=body.text)


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Delete one of your own posts",
)
async def delete_post(
    post_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await post_service.delete_post(db, user, post_id)
