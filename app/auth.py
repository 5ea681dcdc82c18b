from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.db.session import get_session
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models.user import User
from app.db.repositories import get_user as db_get_user
from app.core.security import decode_token, is_token_revoked

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from JWT token with revocation check.

    Args:
        credentials: HTTP Bearer credentials containing the JWT token
        session: Database session (injected)

    Returns:
        User object

    Raises:
        HTTPException: If token is invalid or revoked, or the user no longer exists
    """
    token = credentials.credentials

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if await is_token_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(token)
    except ValueError:
        raise credentials_exception

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise credentials_exception

    user = await db_get_user(session, user_uuid)
    if not user:
        raise credentials_exception
    return user
