"""Async SQLAlchemy engine, session dependency and JSONB helpers.

PostgreSQL is the only store for books, users (with their embedded cart,
library and history lists) and transactions. Repositories talk to it through
raw text() SQL; the embedded lists travel as JSONB documents.
"""

import json
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the few ORM-mapped tables (users identity columns)."""


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; services own commit/rollback."""
    async with async_session_factory() as session:
        yield session


def dump_jsonb(value: Any) -> str:
    """Serialize an embedded document list for a CAST(:param AS JSONB) bind."""
    return json.dumps(value, default=str)


def load_jsonb(value: Any) -> Any:
    """JSONB columns arrive decoded from asyncpg, but raw str when read via other drivers."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value
