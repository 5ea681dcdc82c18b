from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.core.config import settings

# Enhanced engine with connection pooling configuration
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=20,              # Number of permanent connections to maintain
    max_overflow=10,           # Maximum number of connections to allow beyond pool_size
    pool_pre_ping=True,        # Verify connections before using them
    pool_recycle=3600,         # Recycle connections after 1 hour (3600 seconds)
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Scope one unit of work on ``session``.

    Commits when the block exits normally and rolls back on any exception,
    cancellation included, before re-raising. Reads issued earlier on the same
    session (e.g. while authenticating the caller) may already have begun the
    transaction; they simply become part of this unit of work.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
