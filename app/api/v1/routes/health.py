from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
from app.core.logging import logger
from app.db.session import get_session

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Dict[str, str])
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Health check endpoint.

    Returns:
        Dict with the service status and whether the database answered
    """
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "healthy", "database": "ok"}
