"""
Flock Backend — User Schemas
=============================

What:  Public representations of an identity and the profile update body.

Three levels of exposure:
    UserResponse   → the account itself (profile page, /me): everything but the hash
    UserSummary    → a post's author embedded in feeds: no email
    UserBrief      → a comment author or notification sender: no email, no full name
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from flock.models import User


class UserResponse(BaseModel):
    """
    Full profile of an identity, with its relationship lists as id arrays.

    The relationship collections must have been eager-loaded on `user`
    (see user_service.PROFILE_LOAD_OPTIONS).
    """
    id: uuid.UUID
    username: str
    full_name: str
    email: str
    profile_img: str = ""
    cover_img: str = ""
    bio: str = ""
    link: str = ""
    followers: List[uuid.UUID] = Field(default_factory=list)
    following: List[uuid.UUID] = Field(default_factory=list)
    liked_posts: List[uuid.UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            profile_img=user.profile_img,
            cover_img=user.cover_img,
            bio=user.bio,
            link=user.link,
            followers=[u.id for u in user.followers],
            following=[u.id for u in user.following],
            liked_posts=[p.id for p in user.liked_posts],
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(BaseModel):
    """Author of a post, or an account in the suggestion panel."""
    id: uuid.UUID
    username: str
    full_name: str
    profile_img: str = ""
    cover_img: str = ""
    bio: str = ""
    link: str = ""

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    id: uuid.UUID
    username: str
    profile_img: str = ""

    model_config = {"from_attributes": True}


class UpdateProfileRequest(BaseModel):
    """
    Partial profile update. Omitted or empty fields keep their current value.

    Lengths are capped at the users table column widths.
    Password rotation needs both current_password and new_password.
    profile_img / cover_img carry a base64 data URL of the new image.
    """
    full_name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    link: Optional[str] = Field(default=None, max_length=500)
    profile_img: Optional[str] = None
    cover_img: Optional[str] = None
