"""Shared pytest fixtures for registry, service and API tests."""

import os

# Must be set before shortener.config caches its settings.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from shortener.config import Settings
from shortener.database import build_engine, build_session_factory, close_db, init_db
from shortener.dependencies import get_registry
from shortener.main import app
from shortener.registry import CodeRegistry


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'shortener.db'}",
        STORE_TIMEOUT_SECONDS=10.0,
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(settings)
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def registry(engine: AsyncEngine, settings: Settings) -> CodeRegistry:
    return CodeRegistry(build_session_factory(engine), settings)


@pytest_asyncio.fixture
async def client(registry: CodeRegistry) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_registry() -> CodeRegistry:
        return registry

    app.dependency_overrides[get_registry] = override_get_registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
