"""
Flock Backend — Post Schemas
=============================

What:  Request bodies for creating posts and comments, and the populated post
       returned by every post endpoint.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from flock.models import Post
from flock.schemas.user import UserBrief, UserSummary


class CreatePostRequest(BaseModel):
    """
    text and img are both optional at the schema level; PostService rejects
    a post that has neither.
    """
    text: Optional[str] = None
    img: Optional[str] = Field(default=None, description="Base64 data URL of an image")


class CommentRequest(BaseModel):
    text: Optional[str] = None


class CommentResponse(BaseModel):
    id: uuid.UUID
    text: str
    user: UserBrief
    created_at: datetime

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    """
    A post with its author, like list and comments resolved.

    `likes` is the list of identity ids that currently like the post.
    The relationships must have been eager-loaded (see post_service.POST_LOAD_OPTIONS).
    """
    id: uuid.UUID
    user: UserSummary
    text: Optional[str] = None
    img: Optional[str] = None
    likes: List[uuid.UUID] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id,
            user=UserSummary.model_validate(post.user),
            text=post.text,
            img=post.img,
            likes=[u.id for u in post.likes],
            comments=[CommentResponse.model_validate(c) for c in post.comments],
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
