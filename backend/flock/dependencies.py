"""
Flock Backend — Session Verification Dependency
================================================

What:  FastAPI dependency that turns the session cookie into a User.
Why:   Every protected route needs the same checks; declaring
       `user: User = Depends(get_current_user)` is all a route has to do.
How:   Read cookie → verify signature and expiry → load the identity.
       Any failure raises UnauthorizedError (401) and the route never runs.

Failure messages:
    no cookie                      → "Unauthorized: No token provided"
    bad signature / expired / junk → "Unauthorized: Invalid token"
    account no longer exists       → "User not found"
"""

import logging

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flock.config import settings
from flock.database import get_db_session
from flock.exceptions import UnauthorizedError
from flock.models import User
from flock.security import decode_session_token

logger = logging.getLogger(__name__)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError("Unauthorized: No token provided")

    try:
        user_id = decode_session_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired session token")
        raise UnauthorizedError("Unauthorized: Invalid token", context={"reason": "expired"})
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected invalid session token: %s", type(e).__name__)
        raise UnauthorizedError("Unauthorized: Invalid token", context={"reason": type(e).__name__})

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found", context={"user_id": str(user_id)})

    request.state.user_id = user.id
    return user
