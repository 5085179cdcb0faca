"""
Flock Backend — Password Hashing and Session Tokens
====================================================

What:  bcrypt password hashing, signed session tokens (JWT), and the session
       cookie that carries them.
Why:   One place owns every credential primitive, so the hashing cost, token
       lifetime and cookie flags cannot drift apart between signup, login,
       logout and the session dependency.
How:   bcrypt runs in Starlette's threadpool (it is deliberately slow and
       would otherwise block the event loop). Tokens are HS256 JWTs whose
       `sub` claim is the user id.

Cookie flags:
    httponly  → not readable from page JavaScript
    samesite  → "strict": never sent on cross-site requests
    secure    → HTTPS only, everywhere except development
    max_age   → same lifetime as the token's `exp` claim
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from flock.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of input; longer passwords are refused
# at signup instead of being silently truncated.
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 6

# Compared against when the username does not exist so that unknown-user and
# wrong-password logins cost the same bcrypt round.
_DUMMY_HASH = bcrypt.hashpw(b"flock-timing-placeholder", bcrypt.gensalt(rounds=4))


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════

def _hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify(password: str, password_hash: Optional[str]) -> bool:
    hashed = password_hash.encode("utf-8") if password_hash else _DUMMY_HASH
    matched = bcrypt.checkpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], hashed)
    return matched and password_hash is not None


async def hash_password(password: str) -> str:
    """Salted bcrypt hash of `password`, as an ASCII string for the DB column."""
    return await run_in_threadpool(_hash, password)


async def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Check `password` against a stored hash.

    A None hash (unknown user) is checked against a placeholder and always
    returns False, taking roughly the same time as a real mismatch.
    """
    return await run_in_threadpool(_verify, password, password_hash)


# ══════════════════════════════════════════════════════════════════════════
# Session Tokens
# ══════════════════════════════════════════════════════════════════════════

def create_session_token(user_id: uuid.UUID) -> str:
    """Sign a token identifying `user_id`, valid for session_ttl_days."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.session_ttl_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> uuid.UUID:
    """
    Verify a session token and return the user id it carries.

    Raises:
        jwt.InvalidTokenError: bad signature, malformed token, expired token
            (ExpiredSignatureError is a subclass), or a `sub` that is not a UUID.
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )
    try:
        return uuid.UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        raise jwt.InvalidTokenError("Token subject is not a user id") from e


# ══════════════════════════════════════════════════════════════════════════
# Session Cookie
# ══════════════════════════════════════════════════════════════════════════

def set_session_cookie(response: Response, user_id: uuid.UUID) -> None:
    """Issue a fresh session token for `user_id` as the session cookie."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(user_id),
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        samesite="strict",
        secure=not settings.is_development,
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="strict",
        secure=not settings.is_development,
    )
