from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storyloom.config import settings

engine = create_async_engine(settings.database_url, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(db_engine: AsyncEngine | None = None) -> None:
    """Create all tables if they don't exist."""
    from storyloom.db.tables import Base

    async with (db_engine or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
