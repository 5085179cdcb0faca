"""
Flock Backend — Post Service
=============================

What:  Creating and deleting posts, likes, comments, and the four feeds.
Why:   Route handlers stay thin; ownership checks, image handling and the
       like notification all live here.
Who:   Called by the /api/posts route handlers.

Feeds (all newest first):
    all        → every post (404 "No posts found" when there are none)
    following  → posts by accounts the requester follows
    user       → posts by one username
    likes      → posts one user has liked

Every returned post is populated: author summary, like ids, comments with
their authors. POST_LOAD_OPTIONS is the single definition of "populated".

Like toggle:
    ┌────────────┐ no  ┌──────────────────────┐   ┌──────────────────────────┐
    │ row in     │────▶│ insert post_likes row │──▶│ notify post owner (like) │
    │ post_likes?│     └──────────────────────┘   └──────────────────────────┘
    └─────┬──────┘
          │ yes  ┌──────────────────────┐
          └─────▶│ delete the row       │   (no notification)
                 └──────────────────────┘
    The composite primary key on post_likes keeps it a set.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flock.exceptions import DatabaseError, NotFoundError, UnauthorizedError, ValidationError
from flock.models import Comment, Notification, NotificationType, Post, User, follows, post_likes
from flock.schemas.common import MessageResponse
from flock.schemas.post import PostResponse
from flock.services.image_host import image_host

logger = logging.getLogger(__name__)

POST_LOAD_OPTIONS = (
    selectinload(Post.user),
    selectinload(Post.likes),
    selectinload(Post.comments).selectinload(Comment.user),
)


class PostService:
    """Stateless; every method receives the request's session."""

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_post(self, db: AsyncSession, post_id: uuid.UUID) -> Optional[Post]:
        stmt = (
            select(Post)
            .where(Post.id == post_id)
            .options(*POST_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return await db.scalar(stmt)

    async def _list(self, db: AsyncSession, *criteria, join_likes: bool = False) -> List[PostResponse]:
        stmt = select(Post)
        if join_likes:
            stmt = stmt.join(post_likes, post_likes.c.post_id == Post.id)
        stmt = (
            stmt.where(*criteria)
            .options(*POST_LOAD_OPTIONS)
            .order_by(Post.created_at.desc())
            .execution_options(populate_existing=True)
        )
        posts = await db.scalars(stmt)
        return [PostResponse.from_post(p) for p in posts]

    async def _get_or_404(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        user: User,
        text: Optional[str],
        img: Optional[str],
    ) -> PostResponse:
        """
        Create a post with text, an image, or both.

        Raises:
            ValidationError: Neither text nor image, or an invalid image (400).
            ImageStorageError: The image could not be stored (500).
        """
        if not text and not img:
            raise ValidationError(message="Post must contain text or image")

        img_url = await image_host.upload(img) if img else None

        post = Post(user_id=user.id, text=text or None, img=img_url)
        db.add(post)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating post for %s: %s", user.id, str(e))
            await image_host.destroy_url(img_url)
            raise DatabaseError(context={"user_id": str(user.id)})

        logger.info("Post created: %s by %s", post.id, user.username)
        return PostResponse.from_post(await self._load_post(db, post.id))

    async def delete_post(
        self, db: AsyncSession, user: User, post_id: uuid.UUID
    ) -> MessageResponse:
        """
        Delete one of the requester's own posts.

        The stored image is destroyed first, best-effort: a failure there is
        logged by the image host and the post is deleted anyway. Likes and
        comments go with the post (ON DELETE CASCADE).

        Raises:
            NotFoundError: Post does not exist (404).
            UnauthorizedError: Post belongs to someone else (401).
        """
        post = await self._get_or_404(db, post_id)
        if post.user_id != user.id:
            raise UnauthorizedError(
                "You are not authorized to delete this post",
                context={"post_id": str(post_id), "owner_id": str(post.user_id)},
            )

        await image_host.destroy_url(post.img)

        try:
            await db.execute(delete(Post).where(Post.id == post_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": str(post_id)})

        logger.info("Post deleted: %s by %s", post_id, user.username)
        return MessageResponse(message="Post deleted successfully")

    async def toggle_like(
        self, db: AsyncSession, user: User, post_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """
        Like the post if the requester does not like it yet, otherwise unlike.

        Returns:
            Ids of everyone who likes the post after the toggle.

        Raises:
            NotFoundError: Post does not exist (404).
        """
        post = await self._get_or_404(db, post_id)

        edge = (post_likes.c.user_id == user.id) & (post_likes.c.post_id == post_id)
        try:
            liked = await db.scalar(select(post_likes.c.user_id).where(edge))

            if liked is not None:
                await db.execute(delete(post_likes).where(edge))
                logger.info("Post %s unliked by %s", post_id, user.username)
            else:
                await db.execute(insert(post_likes).values(user_id=user.id, post_id=post_id))
                db.add(
                    Notification(
                        from_user_id=user.id,
                        to_user_id=post.user_id,
                        type=NotificationType.LIKE.value,
                    )
                )
                logger.info("Post %s liked by %s", post_id, user.username)

            await db.flush()
            likes = await db.scalars(
                select(post_likes.c.user_id)
                .where(post_likes.c.post_id == post_id)
                .order_by(post_likes.c.created_at)
            )
        except SQLAlchemyError as e:
            logger.error("Database error toggling like on %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": str(post_id), "user_id": str(user.id)})

        return list(likes)

    async def comment_on_post(
        self,
        db: AsyncSession,
        user: User,
        post_id: uuid.UUID,
        text: Optional[str],
    ) -> PostResponse:
        """
        Raises:
            ValidationError: Empty comment (400).
            NotFoundError: Post does not exist (404).
        """
        if not text:
            raise ValidationError(message="Comment must contain text", field="text")

        await self._get_or_404(db, post_id)

        db.add(Comment(post_id=post_id, user_id=user.id, text=text))
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error commenting on %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": str(post_id)})

        return PostResponse.from_post(await self._load_post(db, post_id))

    # ── Feeds ─────────────────────────────────────────────────────────────

    async def list_all_posts(self, db: AsyncSession) -> List[PostResponse]:
        """
        Raises:
            NotFoundError: There are no posts at all (404 "No posts found").
        """
        posts = await self._list(db)
        if not posts:
            raise NotFoundError(resource="post", message="No posts found")
        return posts

    async def list_following_posts(self, db: AsyncSession, user: User) -> List[PostResponse]:
        followed = select(follows.c.followee_id).where(follows.c.follower_id == user.id)
        return await self._list(db, Post.user_id.in_(followed))

    async def list_user_posts(self, db: AsyncSession, username: str) -> List[PostResponse]:
        user_id = await db.scalar(select(User.id).where(User.username == username))
        if user_id is None:
            raise NotFoundError(resource="user", resource_id=username)
        return await self._list(db, Post.user_id == user_id)

    async def list_liked_posts(self, db: AsyncSession, user_id: uuid.UUID) -> List[PostResponse]:
        if await db.get(User, user_id) is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return await self._list(db, post_likes.c.user_id == user_id, join_likes=True)


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
