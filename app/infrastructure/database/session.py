# app/infrastructure/database/session.py

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from app.config.settings import get_settings

Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    # SQLite (tests, local dev) runs without a sized connection pool.
    # An in-memory database lives in one connection, so every session must share it.
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url.endswith("://"):
            return {
                "echo": False,
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {"echo": False}
    return {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


@lru_cache
def get_engine() -> AsyncEngine:
    database_url = get_settings().database_url
    return create_async_engine(database_url, **_engine_options(database_url))


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return build_session_factory(get_engine())


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables known to the metadata. Dev/test convenience; production uses migrations."""
    # Importing the models registers every table on Base.metadata.
    from app.infrastructure.database import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
