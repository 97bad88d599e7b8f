# database.py — Async database setup for the SQL-backed record store
import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from config import StoreSettings

logger = logging.getLogger("business-manager.database")


def create_engine(settings: StoreSettings) -> AsyncEngine:
    """Create an async engine; pool options only apply to server databases"""
    options = {"echo": settings.sql_echo, "future": True}
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=20,
            max_overflow=0,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async def init_db(engine: AsyncEngine):
    """Initialize database and create tables"""
    from models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("✅ Record tables ready")


async def close_db(engine: AsyncEngine):
    """Close database connection pool"""
    await engine.dispose()


@asynccontextmanager
async def session_scope(session_maker: async_sessionmaker):
    """Transactional scope: commit on success, roll back on error"""
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
