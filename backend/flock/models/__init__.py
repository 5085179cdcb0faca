# Models package init
"""
Importing this package registers every table with Base.metadata, which both
Alembic autogenerate and the test suite's create_all() rely on.
"""

from flock.models.user import User, follows
from flock.models.post import Comment, Post, post_likes
from flock.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "follows",
    "Post",
    "Comment",
    "post_likes",
    "Notification",
    "NotificationType",
]
