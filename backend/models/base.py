"""Metadata database: async engine, sessions, and schema lifecycle."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)

async_engine = create_async_engine(settings.database_url, echo=False)
async_session_factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    """Yield one session per request; closed when the request finishes."""
    async with async_session_factory() as session:
        yield session


async def create_tables(engine=async_engine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready (%s).", engine.dialect.name)


async def dispose_engine(engine=async_engine) -> None:
    """Close pooled connections at process shutdown."""
    await engine.dispose()
    logger.info("Database engine disposed.")
