from typing import AsyncIterator

from fastapi import Request
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker

from leadscout.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    return create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True)


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine, recreate: bool = False):
    # Import models so they are registered on SQLModel.metadata
    import leadscout.models  # noqa: F401

    async with engine.begin() as conn:
        if recreate:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session
