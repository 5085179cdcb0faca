"""
Flock Backend — Auth Route Handlers
====================================

What:  POST /api/auth/signup, /login, /logout and GET /api/auth/me.
How:   AuthService checks the credentials; these handlers only add or remove
       the session cookie on the response.
Who:   Called by the frontend sign-up and login pages, and on every page load
       (GET /me) to restore the session.

Rate limit: every path under /api/auth is covered by RateLimitMiddleware.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from flock.database import get_db_session
from flock.dependencies import get_current_user
from flock.models import User
from flock.schemas.auth import LoginRequest, SignupRequest
from flock.schemas.common import ErrorResponse, MessageResponse
from flock.schemas.user import UserResponse
from flock.security import clear_session_cookie, set_session_cookie
from flock.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid email, taken username/email or short password", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="Create an account and start a session",
)
async def signup(
    body: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.signup(
        db=db,
        full_name=body.full_name,
        username=body.username,
        email=body.email,
        password=body.password,
    )
    set_session_cookie(response, user.id)
    return user


@router.post(
    "/login",
    response_model=UserResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="Log in and start a session",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.login(db=db, username=body.username, password=body.password)
    set_session_cookie(response, user.id)
    return user


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="End the session",
)
async def logout(response: Response) -> MessageResponse:
    """Clears the cookie. Works without a session, so it never fails."""
    clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "No or invalid session", "model": ErrorResponse}},
    summary="The logged-in account",
)
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await auth_service.get_me(db=db, user_id=user.id)
