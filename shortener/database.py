"""Database engine and session factory setup for the URL shortener.

This module provides SQLAlchemy async engine construction, the session factory
handed to the code registry, and database lifecycle operations. PostgreSQL
(asyncpg) is the production backend; SQLite (aiosqlite) is used for local runs
and the test suite.

Flow Diagram — Database Lifecycle
=================================
::
    ┌─────────────┐
    │ build_engine│
    │ (settings)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ init_db()    │
    │ create_all   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ build_session│
    │ _factory()   │──► CodeRegistry (one session per operation)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ close_db()   │
    │ dispose      │
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine and create tables**::
    engine = build_engine(get_settings())
    await init_db(engine)

**Step 2 — Hand a session factory to the registry**::
    registry = CodeRegistry(build_session_factory(engine), settings)

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- Connection pool sizing and pool timeout apply to server backends only.
- SQLite connections get a busy timeout matching STORE_TIMEOUT_SECONDS.
- Sessions never expire attributes on commit, so returned records stay readable.
- Engine is disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    build_engine():  Creates the async engine from settings.
    build_session_factory():  Creates the async session factory.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortener.config import Settings

__all__ = ["Base", "build_engine", "build_session_factory", "init_db", "close_db"]


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.DATABASE_URL)
    options: dict[str, Any] = {"echo": settings.DATABASE_ECHO}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": settings.STORE_TIMEOUT_SECONDS}
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )

    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # Import models so their tables are registered on Base.metadata.
    import shortener.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
