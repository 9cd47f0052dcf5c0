import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from typing import Optional

from backend.app.core.config import settings
from backend.app.core.errors import TournamentError, PersistenceError

logger = logging.getLogger(__name__)

Base = declarative_base()


def get_database_url() -> Optional[str]:
    """Helper to retrieve DB URL in scripts context"""
    return settings.database_url


def create_engine_for(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across the session factory
        return create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        url,
        echo=False,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def get_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def init_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create the process-wide engine and session factory."""
    global engine, AsyncSessionLocal
    url = url or get_database_url()
    if not url:
        raise RuntimeError("DATABASE_URL is not configured")
    engine = create_engine_for(url)
    AsyncSessionLocal = get_session_maker(engine)
    return engine


# Dependency for API routes
async def get_db():
    if AsyncSessionLocal is None:
        init_engine()
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession, action: str):
    """
    Commit on success. Any failure rolls back everything done inside the block;
    store errors surface as PersistenceError, domain errors propagate unchanged.
    """
    try:
        yield
        await db.commit()
    except TournamentError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("DB error while trying to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}", e) from e
