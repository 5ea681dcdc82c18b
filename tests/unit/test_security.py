"""
Unit tests for the security module.
Tests JWT access token creation/validation and the Redis-backed revocation check.
"""
import pytest
from datetime import timedelta
import redis
from jose import jwt

from app.core.security import (
    create_access_token,
    decode_token,
    revoked_token_key,
    is_token_revoked,
)
from app.core.config import settings
from app.cache.redis_client import cache


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token creation and decoding."""

    def test_create_access_token(self):
        """Test access token creation."""
        token = create_access_token({"sub": "user123"})

        assert isinstance(token, str)
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == "user123"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_decode_valid_token(self):
        token = create_access_token({"sub": "user123"}, expires_delta=timedelta(minutes=5))

        payload = decode_token(token)
        assert payload["sub"] == "user123"
        assert payload["type"] == "access"

    def test_decode_invalid_token(self):
        """Test that malformed tokens raise errors."""
        with pytest.raises(ValueError, match="Invalid token"):
            decode_token("invalid.token.here")

    def test_decode_token_signed_with_other_key(self):
        token = jwt.encode({"sub": "user123", "type": "access"}, "another-secret", algorithm=settings.ALGORITHM)

        with pytest.raises(ValueError, match="Invalid token"):
            decode_token(token)

    def test_decode_expired_token(self):
        """Test that expired tokens raise errors."""
        token = create_access_token({"sub": "user123"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(ValueError, match="Token has expired"):
            decode_token(token)

    def test_decode_token_missing_subject(self):
        token = jwt.encode({"type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        with pytest.raises(ValueError, match="Invalid token payload"):
            decode_token(token)


@pytest.mark.unit
@pytest.mark.asyncio
class TestTokenRevocation:
    """Test the revocation check against the fakeredis-backed cache."""

    async def test_revoked_token(self, fake_redis):
        """Test that a token on the revocation list is reported as revoked."""
        token = create_access_token({"sub": "user123"})
        fake_redis.setex(revoked_token_key(token), 3600, "true")

        assert await is_token_revoked(token) is True

    async def test_is_token_revoked_not_revoked(self):
        assert await is_token_revoked("non_revoked_token") is False

    async def test_only_listed_tokens_are_revoked(self, fake_redis):
        tokens = [create_access_token({"sub": f"user{i}"}) for i in range(3)]
        fake_redis.setex(revoked_token_key(tokens[0]), 3600, "true")
        fake_redis.setex(revoked_token_key(tokens[1]), 3600, "true")

        assert await is_token_revoked(tokens[0]) is True
        assert await is_token_revoked(tokens[1]) is True
        assert await is_token_revoked(tokens[2]) is False

    async def test_redis_error_is_treated_as_not_revoked(self, monkeypatch):
        """Test that a Redis outage does not lock every caller out."""
        def broken_exists(*keys):
            raise redis.ConnectionError("connection refused")

        monkeypatch.setattr(cache._client, "exists", broken_exists)

        assert await is_token_revoked("any_token") is False
