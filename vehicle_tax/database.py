"""
database.py — SQLAlchemy 2.0 async engine and session factory.

The engine module never imports this; only the store side (store.py, service.py,
seed.py, alembic/env.py) touches the database.

Usage from a script or worker:
    from vehicle_tax.database import session_scope
    async with session_scope() as db:
        book = await store.load_rate_book(db)
"""
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from vehicle_tax.config import settings


class Base(DeclarativeBase):
    """Declarative base for the rate, fiscal-year and vehicle tables in vehicle_tax/models/."""
    pass


# ---------------------------------------------------------------------------
# Engine and session factory, one per process
# ---------------------------------------------------------------------------
async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
