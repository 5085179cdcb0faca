"""
Flock Backend — Password and Session Token Tests
=================================================

What we test:
    ✅ bcrypt hashes are salted and verify only the right password
    ✅ Unknown user (None hash) never verifies
    ✅ Session tokens round-trip the user id
    ✅ Tampered, expired and foreign-signed tokens are rejected
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from flock.config import settings
from flock.security import (
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)


class TestPasswords:

    @pytest.mark.asyncio
    async def test_hash_is_not_plaintext_and_salted(self):
        first = await hash_password("secret123")
        second = await hash_password("secret123")

        assert "secret123" not in first
        assert first != second

    @pytest.mark.asyncio
    async def test_verify_accepts_right_password(self):
        hashed = await hash_password("secret123")
        assert await verify_password("secret123", hashed) is True

    @pytest.mark.asyncio
    async def test_verify_rejects_wrong_password(self):
        hashed = await hash_password("secret123")
        assert await verify_password("secret124", hashed) is False

    @pytest.mark.asyncio
    async def test_verify_without_hash_is_false(self):
        assert await verify_password("flock-timing-placeholder", None) is False


class TestSessionTokens:

    def test_round_trip(self):
        user_id = uuid.uuid4()
        assert decode_session_token(create_session_token(user_id)) == user_id

    def test_tampered_token_rejected(self):
        token = create_session_token(uuid.uuid4())
        tampered = token[:-2] + ("aa" if token[-2:] != "aa" else "bb")
        with pytest.raises(jwt.InvalidTokenError):
            decode_session_token(tampered)

    def test_expired_token_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "iat": now - timedelta(days=20), "exp": now - timedelta(days=5)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_session_token(token)

    def test_other_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            "some-other-secret-entirely",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_session_token(token)

    def test_non_uuid_subject_rejected(self):
        token = jwt.encode(
            {"sub": "not-a-uuid", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_session_token(token)
