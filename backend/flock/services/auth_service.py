"""
Flock Backend — Auth Service
=============================

What:  Account creation, credential verification and current-identity lookup.
Why:   Keeps the signup rules and their order in one place, independent of
       cookies and HTTP (the route issues/clears the session cookie).
Who:   Called by the /api/auth route handlers.

Signup rules (checked in this order, each with its own message):
    1. Email shape            → "Invalid email format"
    2. Username not taken     → "Username is already taken"
    3. Email not taken        → "Email is already taken"
    4. Password length ≥ 6    → "Password must be at least 6 characters"

Login deliberately has a single failure message ("Invalid credentials") for
both unknown usernames and wrong passwords.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flock.exceptions import DatabaseError, NotFoundError, UnauthorizedError, ValidationError
from flock.models import User
from flock.schemas.user import UserResponse
from flock.security import hash_password, verify_password
from flock.services.user_service import is_valid_email, load_profile, validate_new_password

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless; every method receives the request's session."""

    async def signup(
        self,
        db: AsyncSession,
        full_name: str,
        username: str,
        email: str,
        password: str,
    ) -> UserResponse:
        """
        Register a new account.

        Returns:
            The new identity. The route uses its id to issue the session cookie.

        Raises:
            ValidationError: Any of the signup rules failed (400).
        """
        if not is_valid_email(email):
            raise ValidationError(message="Invalid email format", field="email")

        existing = await db.scalar(select(User.id).where(User.username == username))
        if existing is not None:
            raise ValidationError(message="Username is already taken", field="username")

        existing = await db.scalar(select(User.id).where(User.email == email))
        if existing is not None:
            raise ValidationError(message="Email is already taken", field="email")

        validate_new_password(password, "Password must be at least 6 characters")

        user = User(
            full_name=full_name,
            username=username,
            email=email,
            password_hash=await hash_password(password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent signup claimed the username or email between the
            # checks above and this insert.
            await db.rollback()
            raise ValidationError(message="Username or email is already taken")
        except SQLAlchemyError as e:
            logger.error("Database error creating user %s: %s", username, str(e))
            raise DatabaseError(context={"username": username})

        logger.info("User registered: %s (%s)", user.username, user.id)
        return await self.get_me(db, user.id)

    async def login(self, db: AsyncSession, username: str, password: str) -> UserResponse:
        """
        Verify credentials.

        Raises:
            UnauthorizedError: Unknown username or wrong password (same message).
        """
        user = await db.scalar(select(User).where(User.username == username))
        password_ok = await verify_password(password, user.password_hash if user else None)

        if user is None or not password_ok:
            logger.info("Failed login for username=%r", username)
            raise UnauthorizedError("Invalid credentials")

        logger.info("User logged in: %s", user.username)
        return await self.get_me(db, user.id)

    async def get_me(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        """The authenticated identity with its relationship lists."""
        user = await load_profile(db, User.id == user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserResponse.from_user(user)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
