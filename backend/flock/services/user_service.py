"""
Flock Backend — User Service
=============================

What:  Profiles, the follow graph, account suggestions and profile updates.
Who:   Called by the /api/users route handlers (and AuthService for the
       shared identity rules and profile loading).

Follow toggle:
    The `follows` table holds one row per follower → followee edge. Both
    relationship lists (the target's followers, the actor's following) are
    read from that same row, so following then unfollowing restores both
    lists exactly. Only the follow direction writes a notification.

Suggestions:
    ┌──────────────────┐    ┌──────────────────────┐    ┌───────────────┐
    │ random sample of │───▶│ drop already-followed │───▶│ keep first 4  │
    │ 10 other users   │    │ users                 │    │               │
    └──────────────────┘    └──────────────────────┘    └───────────────┘
    The sample is drawn before filtering, so a user who follows most of the
    sample gets fewer than 4 suggestions. The randomness is unseeded.
"""

import logging
import re
import uuid
from typing import List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flock.config import settings
from flock.exceptions import DatabaseError, NotFoundError, UnauthorizedError, ValidationError
from flock.models import Notification, NotificationType, User, follows
from flock.schemas.common import MessageResponse
from flock.schemas.user import UpdateProfileRequest, UserResponse, UserSummary
from flock.security import (
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    hash_password,
    verify_password,
)
from flock.services.image_host import image_host

logger = logging.getLogger(__name__)

# Anything@anything.tld, no whitespace
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Relationship lists included in every full profile response
PROFILE_LOAD_OPTIONS = (
    selectinload(User.followers),
    selectinload(User.following),
    selectinload(User.liked_posts),
)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def validate_new_password(password: str, message: str) -> None:
    """Length rules shared by signup and password rotation."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(message=message, field="password")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            field="password",
        )


async def load_profile(db: AsyncSession, *criteria) -> Optional[User]:
    """
    Load one user with followers, following and liked posts populated.

    populate_existing refreshes the collections when the user is already in
    the session's identity map (e.g. the current user after a toggle).
    """
    stmt = (
        select(User)
        .where(*criteria)
        .options(*PROFILE_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    return await db.scalar(stmt)


class UserService:
    """Stateless; every method receives the request's session."""

    async def get_profile(self, db: AsyncSession, username: str) -> UserResponse:
        """
        Raises:
            NotFoundError: No user with that username (404).
        """
        user = await load_profile(db, User.username == username)
        if user is None:
            raise NotFoundError(resource="user", resource_id=username)
        return UserResponse.from_user(user)

    async def toggle_follow(
        self, db: AsyncSession, user: User, target_id: uuid.UUID
    ) -> MessageResponse:
        """
        Follow `target_id` if not already following, otherwise unfollow.

        Raises:
            ValidationError: Attempt to follow yourself (400).
            NotFoundError: Target user does not exist (404).
        """
        if target_id == user.id:
            raise ValidationError(message="You can't follow yourself")

        target = await db.get(User, target_id)
        if target is None:
            raise NotFoundError(resource="user", resource_id=str(target_id))

        edge = (follows.c.follower_id == user.id) & (follows.c.followee_id == target_id)
        try:
            is_following = await db.scalar(select(follows.c.follower_id).where(edge))

            if is_following is not None:
                await db.execute(delete(follows).where(edge))
                message = "Unfollowed successfully"
            else:
                await db.execute(insert(follows).values(follower_id=user.id, followee_id=target_id))
                db.add(
                    Notification(
                        from_user_id=user.id,
                        to_user_id=target_id,
                        type=NotificationType.FOLLOW.value,
                    )
                )
                message = "Followed successfully"

            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error toggling follow %s → %s: %s", user.id, target_id, str(e))
            raise DatabaseError(context={"user_id": str(user.id), "target_id": str(target_id)})

        logger.info("%s: %s → %s", message, user.username, target.username)
        return MessageResponse(message=message)

    async def suggested_users(self, db: AsyncSession, user: User) -> List[UserSummary]:
        """Up to suggestion_limit random users that `user` does not follow yet."""
        following_ids = set(
            await db.scalars(
                select(follows.c.followee_id).where(follows.c.follower_id == user.id)
            )
        )

        sample = await db.scalars(
            select(User)
            .where(User.id != user.id)
            .order_by(func.random())
            .limit(settings.suggestion_sample_size)
        )

        suggested = [u for u in sample if u.id not in following_ids]
        return [UserSummary.model_validate(u) for u in suggested[: settings.suggestion_limit]]

    async def update_profile(
        self, db: AsyncSession, user: User, update: UpdateProfileRequest
    ) -> UserResponse:
        """
        Apply a partial profile update.

        Order of operations:
            1. Password rotation (needs both passwords; verifies the old one)
            2. Username / email uniqueness (only when they change)
            3. Image replacement: destroy the old image, upload the new one
            4. Copy remaining fields; empty values keep the current value

        Raises:
            ValidationError: Half a password pair, short new password,
                malformed or taken email, taken username, bad image (400).
            UnauthorizedError: Current password is wrong (401).
        """
        if bool(update.current_password) != bool(update.new_password):
            raise ValidationError(message="Please provide both current and new password")

        if update.current_password and update.new_password:
            if not await verify_password(update.current_password, user.password_hash):
                raise UnauthorizedError("Current password is incorrect")
            validate_new_password(
                update.new_password, "New password must be at least 6 characters long"
            )
            user.password_hash = await hash_password(update.new_password)
            logger.info("Password rotated for %s", user.username)

        if update.username and update.username != user.username:
            taken = await db.scalar(select(User.id).where(User.username == update.username))
            if taken is not None:
                raise ValidationError(message="Username is already taken", field="username")

        if update.email and update.email != user.email:
            if not is_valid_email(update.email):
                raise ValidationError(message="Invalid email format", field="email")
            taken = await db.scalar(select(User.id).where(User.email == update.email))
            if taken is not None:
                raise ValidationError(message="Email is already taken", field="email")

        profile_img = user.profile_img
        if update.profile_img:
            await image_host.destroy_url(user.profile_img)
            profile_img = await image_host.upload(update.profile_img)

        cover_img = user.cover_img
        if update.cover_img:
            await image_host.destroy_url(user.cover_img)
            cover_img = await image_host.upload(update.cover_img)

        user.full_name = update.full_name or user.full_name
        user.username = update.username or user.username
        user.email = update.email or user.email
        user.profile_img = profile_img
        user.cover_img = cover_img
        user.bio = update.bio or user.bio
        user.link = update.link or user.link

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", user.id, str(e))
            raise DatabaseError(context={"user_id": str(user.id)})

        return UserResponse.from_user(await load_profile(db, User.id == user.id))


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
