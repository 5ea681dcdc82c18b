"""
JWT access token handling and Redis-backed token revocation.

Tokens are issued by the platform's identity service; this service only
verifies them and honours revocations.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict
from jose import jwt, JWTError
from app.core.config import settings
from app.cache.redis_client import cache


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Dict:
    """
    Decode and validate a JWT token.

    Raises:
        ValueError: If token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        if "sub" not in payload:
            raise ValueError("Invalid token payload: missing 'sub' field")

        return payload
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")


def revoked_token_key(token: str) -> str:
    """Redis key under which the identity service records a revoked token."""
    return f"revoked_token:{token}"


async def is_token_revoked(token: str) -> bool:
    return await cache.exists(revoked_token_key(token))
