from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from fastapi import HTTPException
from typing import AsyncIterator, Optional, Tuple
import logging

from composer.core.config import settings

logger = logging.getLogger(__name__)


def make_sessionmaker(database_url: str) -> Tuple[AsyncEngine, sessionmaker]:
    """Engine plus session factory for `database_url` (asyncpg in production, aiosqlite in tests)."""
    db_engine = create_async_engine(database_url, pool_pre_ping=True)
    factory = sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    return db_engine, factory


def _masked(url: str) -> str:
    if settings.POSTGRES_PASSWORD:
        return url.replace(settings.POSTGRES_PASSWORD, "********")
    return url


engine: Optional[AsyncEngine] = None
SessionLocal: Optional[sessionmaker] = None

# Rendering and the variable catalog work without storage; only template records need it
if settings.DATABASE_URL:
    logger.info("Template storage: %s", _masked(settings.DATABASE_URL))
    engine, SessionLocal = make_sessionmaker(settings.DATABASE_URL)
else:
    logger.warning("DATABASE_URL is not set; template storage endpoints will answer 503.")


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; closed once the response is sent."""
    if SessionLocal is None:
        raise HTTPException(status_code=503, detail="Template storage is not configured.")
    async with SessionLocal() as db:
        yield db
