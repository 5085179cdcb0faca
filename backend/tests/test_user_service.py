"""
Flock Backend — User Service Unit Tests
========================================

What we test:
    ✅ Follow then unfollow restores both relationship lists
    ✅ Following writes one notification; unfollowing writes none
    ✅ Self-follow and unknown targets are rejected
    ✅ Suggestions never include the requester or followed users
    ✅ Profile update: password rotation rules, uniqueness, image replacement
"""

import uuid

import pytest
from sqlalchemy import func, select

from flock.exceptions import NotFoundError, UnauthorizedError, ValidationError
from flock.models import Notification, User
from flock.schemas.user import UpdateProfileRequest
from flock.security import verify_password
from flock.services.image_host import public_id_from_url
from flock.services.user_service import UserService, load_profile

from conftest import PNG_DATA_URL


async def _notification_count(db) -> int:
    return await db.scalar(select(func.count()).select_from(Notification))


class TestToggleFollow:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_follow_then_unfollow_restores_lists(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        followed = await self.service.toggle_follow(db_session, alice, bob.id)
        assert followed.message == "Followed successfully"

        bob_profile = await self.service.get_profile(db_session, "bob")
        alice_profile = await self.service.get_profile(db_session, "alice")
        assert bob_profile.followers == [alice.id]
        assert alice_profile.following == [bob.id]

        unfollowed = await self.service.toggle_follow(db_session, alice, bob.id)
        assert unfollowed.message == "Unfollowed successfully"

        bob_profile = await self.service.get_profile(db_session, "bob")
        alice_profile = await self.service.get_profile(db_session, "alice")
        assert bob_profile.followers == []
        assert alice_profile.following == []

    @pytest.mark.asyncio
    async def test_only_follow_writes_notification(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        await self.service.toggle_follow(db_session, alice, bob.id)
        await self.service.toggle_follow(db_session, alice, bob.id)

        notification = (await db_session.scalars(select(Notification))).one()
        assert notification.type == "follow"
        assert notification.from_user_id == alice.id
        assert notification.to_user_id == bob.id
        assert notification.read is False

    @pytest.mark.asyncio
    async def test_cannot_follow_yourself(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="You can't follow yourself"):
            await self.service.toggle_follow(db_session, alice, alice.id)

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(NotFoundError, match="User not found"):
            await self.service.toggle_follow(db_session, alice, uuid.uuid4())


class TestSuggestedUsers:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_excludes_self_and_followed(self, db_session, make_user):
        me = await make_user("me")
        others = [await make_user(f"other{i}") for i in range(6)]
        for followed in others[:3]:
            await self.service.toggle_follow(db_session, me, followed.id)

        for _ in range(5):
            suggested = await self.service.suggested_users(db_session, me)
            ids = {s.id for s in suggested}

            assert me.id not in ids
            assert ids.isdisjoint({u.id for u in others[:3]})
            assert ids <= {u.id for u in others[3:]}
            assert len(suggested) <= 4

    @pytest.mark.asyncio
    async def test_at_most_four(self, db_session, make_user):
        me = await make_user("me")
        for i in range(8):
            await make_user(f"other{i}")

        suggested = await self.service.suggested_users(db_session, me)

        assert len(suggested) == 4

    @pytest.mark.asyncio
    async def test_summary_has_no_email(self, db_session, make_user):
        me = await make_user("me")
        await make_user("other")

        suggested = await self.service.suggested_users(db_session, me)

        assert "email" not in suggested[0].model_dump()


class TestUpdateProfile:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_plain_fields_and_fallbacks(self, db_session, make_user):
        alice = await make_user("alice", bio="old bio", link="https://old.example")

        result = await self.service.update_profile(
            db_session, alice, UpdateProfileRequest(full_name="Alice Liddell", bio="", link="https://new.example"),
        )

        assert result.full_name == "Alice Liddell"
        assert result.bio == "old bio"
        assert result.link == "https://new.example"
        assert result.username == "alice"

    @pytest.mark.asyncio
    async def test_half_password_pair_rejected(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="Please provide both current and new password"):
            await self.service.update_profile(
                db_session, alice, UpdateProfileRequest(new_password="newsecret"),
            )

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, db_session, make_user):
        alice = await make_user("alice", password="secret123")
        with pytest.raises(UnauthorizedError, match="Current password is incorrect"):
            await self.service.update_profile(
                db_session, alice,
                UpdateProfileRequest(current_password="wrong-one", new_password="newsecret"),
            )

    @pytest.mark.asyncio
    async def test_short_new_password(self, db_session, make_user):
        alice = await make_user("alice", password="secret123")
        with pytest.raises(ValidationError, match="New password must be at least 6 characters long"):
            await self.service.update_profile(
                db_session, alice,
                UpdateProfileRequest(current_password="secret123", new_password="abc"),
            )

    @pytest.mark.asyncio
    async def test_password_rotation(self, db_session, make_user):
        alice = await make_user("alice", password="secret123")

        await self.service.update_profile(
            db_session, alice,
            UpdateProfileRequest(current_password="secret123", new_password="newsecret"),
        )

        assert await verify_password("newsecret", alice.password_hash)
        assert not await verify_password("secret123", alice.password_hash)

    @pytest.mark.asyncio
    async def test_taken_username_rejected(self, db_session, make_user):
        alice = await make_user("alice")
        await make_user("bob")
        with pytest.raises(ValidationError, match="Username is already taken"):
            await self.service.update_profile(db_session, alice, UpdateProfileRequest(username="bob"))

    @pytest.mark.asyncio
    async def test_taken_email_rejected(self, db_session, make_user):
        alice = await make_user("alice")
        await make_user("bob")
        with pytest.raises(ValidationError, match="Email is already taken"):
            await self.service.update_profile(
                db_session, alice, UpdateProfileRequest(email="bob@example.com")
            )
        assert alice.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_malformed_email_rejected(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="Invalid email format"):
            await self.service.update_profile(db_session, alice, UpdateProfileRequest(email="nope"))

    @pytest.mark.asyncio
    async def test_profile_image_replaced(self, db_session, make_user, image_host):
        alice = await make_user("alice")

        first = await self.service.update_profile(
            db_session, alice, UpdateProfileRequest(profile_img=PNG_DATA_URL),
        )
        first_file = image_host.images_dir / f"{public_id_from_url(first.profile_img)}.png"
        assert first_file.is_file()

        second = await self.service.update_profile(
            db_session, alice, UpdateProfileRequest(profile_img=PNG_DATA_URL),
        )

        assert second.profile_img != first.profile_img
        assert not first_file.exists()
        assert second.profile_img.startswith("/api/files/images/")

    @pytest.mark.asyncio
    async def test_liked_posts_and_lists_on_profile(self, db_session, make_user):
        alice = await make_user("alice")

        profile = await load_profile(db_session, User.id == alice.id)

        assert profile.liked_posts == []
        assert profile.followers == []
