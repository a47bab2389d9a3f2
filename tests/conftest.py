from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from algodeck.context import AppContext, create_context
from algodeck.database import make_engine


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'algodeck.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
async def ctx(engine: AsyncEngine) -> AppContext:
    return await create_context(engine, fts_enabled=True)


@pytest.fixture
async def substring_ctx(engine: AsyncEngine) -> AppContext:
    """A context with full-text search switched off."""
    return await create_context(engine, fts_enabled=False)


@pytest.fixture
async def db(ctx: AppContext) -> AsyncGenerator[AsyncSession, None]:
    async with ctx.session_factory() as session:
        yield session
