"""
Flock Backend — Notification Schemas
=====================================
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from flock.schemas.user import UserBrief


class NotificationResponse(BaseModel):
    """A follow/like event with the sender summarized as username + avatar."""
    id: uuid.UUID
    from_user: UserBrief
    to_user_id: uuid.UUID
    type: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
