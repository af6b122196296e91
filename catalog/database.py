"""
Database connection management.
Async SQLAlchemy engine and session factory for the hosted Postgres database.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def create_session_factory(database_url: str, **engine_kwargs) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Build an engine and a session factory for the given URL.

    Sessions do not expire on commit so records can be read after the
    transaction closes.
    """
    new_engine = create_async_engine(database_url, **engine_kwargs)
    factory = async_sessionmaker(new_engine, class_=AsyncSession, expire_on_commit=False)
    return new_engine, factory


async def create_schema(db_engine: AsyncEngine) -> None:
    """Create tables and make sure the settings singleton row exists."""
    # Registers the models on Base.metadata
    from catalog.models import SiteSettings

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        result = await session.execute(select(SiteSettings).limit(1))
        if result.scalar_one_or_none() is None:
            session.add(SiteSettings(whatsapp_number="", whatsapp_message=""))
            await session.commit()
            logger.info("Created default settings row")


async def init_db(database_url: str) -> None:
    """Connect to the database and prepare the schema."""
    global engine, AsyncSessionLocal

    engine, AsyncSessionLocal = create_session_factory(database_url, pool_pre_ping=True)
    await create_schema(engine)
    logger.info("Database initialized")


async def close_db() -> None:
    """Dispose the engine and drop the session factory."""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    AsyncSessionLocal = None


def get_session_factory() -> Optional[async_sessionmaker[AsyncSession]]:
    """Return the session factory, or None when the database is not initialized."""
    return AsyncSessionLocal
