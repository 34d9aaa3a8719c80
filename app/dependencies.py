"""FastAPI dependency helpers."""
from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_session
from app.repository import SqlStore, Store
from services.llm import StructuredGenerator, build_generator


async def db_session() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def settings_provider() -> Settings:
    return get_settings()


def store_provider(session: AsyncSession = Depends(db_session)) -> Store:
    return SqlStore(session)


@lru_cache
def _cached_generator() -> StructuredGenerator:
    return build_generator(get_settings())


def generator_provider() -> StructuredGenerator:
    return _cached_generator()
