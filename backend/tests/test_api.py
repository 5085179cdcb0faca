"""
Flock Backend — API Tests
==========================

What:  End-to-end tests through the HTTP layer: routing, the session cookie,
       status codes and the error body shape.
How:   httpx AsyncClient over ASGITransport against the real app, with the
       database dependency pointed at the per-test in-memory database.
       Each client keeps its own cookies, so one client is one logged-in user.
"""

import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from unittest.mock import patch

from flock.config import settings
from flock.middleware.rate_limit import RateLimitMiddleware
from flock.security import create_session_token

from conftest import PNG_DATA_URL, signup


def assert_error(response, status_code: int, error: str, code: str) -> None:
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["error"] == error
    assert body["code"] == code
    assert "request_id" in body


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════

class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_signup_sets_session_cookie(self, client):
        response = await client.post("/api/auth/signup", json={
            "full_name": "Ada Lovelace",
            "username": "ada",
            "email": "ada@example.com",
            "password": "engine42",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "ada"
        assert "password" not in body and "password_hash" not in body

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("jwt=")
        assert "httponly" in cookie
        assert "samesite=strict" in cookie

    @pytest.mark.asyncio
    async def test_me_after_signup(self, client):
        created = await signup(client, "ada")

        response = await client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_duplicate_username(self, client_factory):
        await signup(await client_factory(), "ada")

        response = await (await client_factory()).post("/api/auth/signup", json={
            "full_name": "Other", "username": "ada", "email": "other@example.com", "password": "secret123",
        })

        assert_error(response, 400, "Username is already taken", "validation_error")

    @pytest.mark.asyncio
    async def test_login_and_logout(self, client_factory):
        await signup(await client_factory(), "ada", password="engine42")
        client = await client_factory()

        login = await client.post("/api/auth/login", json={"username": "ada", "password": "engine42"})
        assert login.status_code == 200
        assert (await client.get("/api/auth/me")).status_code == 200

        logout = await client.post("/api/auth/logout")
        assert logout.json() == {"message": "Logged out successfully"}
        assert_error(await client.get("/api/auth/me"), 401, "Unauthorized: No token provided", "unauthorized")

    @pytest.mark.asyncio
    async def test_bad_login_same_error(self, client_factory):
        await signup(await client_factory(), "ada", password="engine42")
        client = await client_factory()

        wrong_password = await client.post("/api/auth/login", json={"username": "ada", "password": "nope!!"})
        unknown_user = await client.post("/api/auth/login", json={"username": "bob", "password": "engine42"})

        assert_error(wrong_password, 401, "Invalid credentials", "unauthorized")
        assert_error(unknown_user, 401, "Invalid credentials", "unauthorized")

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        client.cookies.set("jwt", "not.a.token")
        assert_error(await client.get("/api/auth/me"), 401, "Unauthorized: Invalid token", "unauthorized")

    @pytest.mark.asyncio
    async def test_token_for_missing_user(self, client):
        client.cookies.set("jwt", create_session_token(uuid.uuid4()))
        assert_error(await client.get("/api/auth/me"), 401, "User not found", "unauthorized")

    @pytest.mark.asyncio
    async def test_malformed_body_is_400(self, client):
        response = await client.post("/api/auth/signup", json={"username": "ada"})

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    @pytest.mark.asyncio
    async def test_empty_handle_rejected(self, client):
        response = await client.post("/api/auth/signup", json={
            "full_name": "", "username": "", "email": "ada@example.com", "password": "secret123",
        })

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        assert (await client.get("/api/auth/me")).status_code == 401

    @pytest.mark.asyncio
    async def test_overlong_username_rejected(self, client):
        response = await client.post("/api/auth/signup", json={
            "full_name": "Ada", "username": "a" * 51, "email": "ada@example.com", "password": "secret123",
        })

        assert response.status_code == 400
        assert response.json()["error"].startswith("username:")

    @pytest.mark.asyncio
    async def test_protected_routes_need_session(self, client):
        for method, path in [
            ("GET", "/api/posts/all"),
            ("POST", "/api/posts/create"),
            ("GET", "/api/users/suggested"),
            ("GET", "/api/notifications"),
        ]:
            response = await client.request(method, path, json={})
            assert_error(response, 401, "Unauthorized: No token provided", "unauthorized")


# ══════════════════════════════════════════════════════════════════════════
# Posts
# ══════════════════════════════════════════════════════════════════════════

class TestPostRoutes:

    @pytest.mark.asyncio
    async def test_post_lifecycle(self, client_factory):
        alice = await client_factory()
        bob = await client_factory()
        await signup(alice, "alice")
        bob_profile = await signup(bob, "bob")

        created = await alice.post("/api/posts/create", json={"text": "hello flock"})
        assert created.status_code == 201
        post_id = created.json()["id"]

        liked = await bob.post(f"/api/posts/like/{post_id}")
        assert liked.json() == [bob_profile["id"]]

        commented = await bob.post(f"/api/posts/comment/{post_id}", json={"text": "hi alice"})
        assert commented.json()["comments"][0]["user"]["username"] == "bob"

        feed = await bob.get("/api/posts/all")
        assert [p["id"] for p in feed.json()] == [post_id]
        assert feed.json()[0]["likes"] == [bob_profile["id"]]

        forbidden = await bob.delete(f"/api/posts/{post_id}")
        assert_error(forbidden, 401, "You are not authorized to delete this post", "unauthorized")

        deleted = await alice.delete(f"/api/posts/{post_id}")
        assert deleted.status_code == 200

        assert_error(await alice.get("/api/posts/all"), 404, "No posts found", "not_found")

    @pytest.mark.asyncio
    async def test_empty_post_rejected(self, client):
        await signup(client, "alice")
        response = await client.post("/api/posts/create", json={"text": ""})
        assert_error(response, 400, "Post must contain text or image", "validation_error")

    @pytest.mark.asyncio
    async def test_image_post_is_served(self, client, image_host):
        await signup(client, "alice")

        created = await client.post("/api/posts/create", json={"img": PNG_DATA_URL})
        img_url = created.json()["img"]

        served = await client.get(img_url)
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"

    @pytest.mark.asyncio
    async def test_missing_file_is_404(self, client, image_host):
        response = await client.get("/api/files/images/nothing-here.png")
        assert_error(response, 404, "File not found", "not_found")

    @pytest.mark.asyncio
    async def test_user_and_following_feeds(self, client_factory):
        alice = await client_factory()
        bob = await client_factory()
        await signup(alice, "alice")
        bob_profile = await signup(bob, "bob")
        await bob.post("/api/posts/create", json={"text": "by bob"})

        assert (await alice.get("/api/posts/following")).json() == []

        await alice.post(f"/api/users/follow/{bob_profile['id']}")
        following = await alice.get("/api/posts/following")
        assert [p["text"] for p in following.json()] == ["by bob"]

        by_user = await alice.get("/api/posts/user/bob")
        assert [p["text"] for p in by_user.json()] == ["by bob"]

        assert_error(await alice.get("/api/posts/user/ghost"), 404, "User not found", "not_found")

    @pytest.mark.asyncio
    async def test_liked_feed(self, client):
        me = await signup(client, "alice")
        post_id = (await client.post("/api/posts/create", json={"text": "self-liked"})).json()["id"]
        await client.post(f"/api/posts/like/{post_id}")

        liked = await client.get(f"/api/posts/likes/{me['id']}")

        assert [p["id"] for p in liked.json()] == [post_id]


# ══════════════════════════════════════════════════════════════════════════
# Users and Notifications
# ══════════════════════════════════════════════════════════════════════════

class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_follow_toggle_and_notification(self, client_factory):
        alice = await client_factory()
        bob = await client_factory()
        alice_profile = await signup(alice, "alice")
        bob_profile = await signup(bob, "bob")

        followed = await alice.post(f"/api/users/follow/{bob_profile['id']}")
        assert followed.json() == {"message": "Followed successfully"}

        profile = (await alice.get("/api/users/profile/bob")).json()
        assert profile["followers"] == [alice_profile["id"]]

        notifications = (await bob.get("/api/notifications")).json()
        assert len(notifications) == 1
        assert notifications[0]["type"] == "follow"
        assert notifications[0]["from_user"]["username"] == "alice"

        unfollowed = await alice.post(f"/api/users/follow/{bob_profile['id']}")
        assert unfollowed.json() == {"message": "Unfollowed successfully"}
        assert (await alice.get("/api/users/profile/bob")).json()["followers"] == []

        cleared = await bob.delete("/api/notifications")
        assert cleared.status_code == 200
        assert (await bob.get("/api/notifications")).json() == []

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, client):
        me = await signup(client, "alice")
        response = await client.post(f"/api/users/follow/{me['id']}")
        assert_error(response, 400, "You can't follow yourself", "validation_error")

    @pytest.mark.asyncio
    async def test_unknown_profile(self, client):
        await signup(client, "alice")
        assert_error(await client.get("/api/users/profile/ghost"), 404, "User not found", "not_found")

    @pytest.mark.asyncio
    async def test_suggested_excludes_self(self, client_factory):
        me = await client_factory()
        my_profile = await signup(me, "alice")
        for name in ("bob", "carol"):
            await signup(await client_factory(), name)

        suggested = (await me.get("/api/users/suggested")).json()

        assert {u["username"] for u in suggested} == {"bob", "carol"}
        assert my_profile["id"] not in {u["id"] for u in suggested}

    @pytest.mark.asyncio
    async def test_update_profile(self, client):
        await signup(client, "alice", password="secret123")

        response = await client.post("/api/users/update", json={
            "bio": "curiouser and curiouser",
            "current_password": "secret123",
            "new_password": "rabbit-hole",
        })
        assert response.status_code == 200
        assert response.json()["bio"] == "curiouser and curiouser"

        await client.post("/api/auth/logout")
        relogin = await client.post("/api/auth/login", json={"username": "alice", "password": "rabbit-hole"})
        assert relogin.status_code == 200

    @pytest.mark.asyncio
    async def test_update_overlong_bio_rejected(self, client):
        await signup(client, "alice")

        response = await client.post("/api/users/update", json={"bio": "x" * 501})

        assert response.status_code == 400
        assert response.json()["error"].startswith("bio:")
        assert (await client.get("/api/auth/me")).json()["bio"] == ""

    @pytest.mark.asyncio
    async def test_update_wrong_current_password(self, client):
        await signup(client, "alice", password="secret123")
        response = await client.post("/api/users/update", json={
            "current_password": "wrong-one", "new_password": "rabbit-hole",
        })
        assert_error(response, 401, "Current password is incorrect", "unauthorized")


# ══════════════════════════════════════════════════════════════════════════
# Health and Middleware
# ══════════════════════════════════════════════════════════════════════════

class TestOperational:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "writable"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/api/auth/me", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_rate_limit_only_on_listed_paths(self):
        app = FastAPI()

        @app.get("/api/auth/ping")
        async def auth_ping():
            return {"ok": True}

        @app.get("/api/auth/pong")
        async def auth_pong():
            return {"ok": True}

        app.add_middleware(RateLimitMiddleware)

        with patch("flock.middleware.rate_limit.settings") as mock_settings:
            mock_settings.rate_limit_paths_set = {"/api/auth/ping"}
            mock_settings.rate_limit_requests = 2
            mock_settings.rate_limit_window = 60

            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                statuses = [(await client.get("/api/auth/ping")).status_code for _ in range(3)]
                other = await client.get("/api/auth/pong")

                assert statuses == [200, 200, 429]
                assert other.status_code == 200

                limited = await client.get("/api/auth/ping")
                assert limited.json()["code"] == "rate_limit_exceeded"
                assert int(limited.headers["Retry-After"]) > 0

    @pytest.mark.asyncio
    async def test_me_is_never_rate_limited(self, client):
        await signup(client, "ada")

        with patch.object(settings, "rate_limit_requests", 1):
            statuses = [(await client.get("/api/auth/me")).status_code for _ in range(12)]
            login = await client.post("/api/auth/login", json={"username": "ada", "password": "secret123"})

        assert statuses == [200] * 12
        # the signup above already filled the one-request window
        assert login.status_code == 429
