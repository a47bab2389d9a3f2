"""Application context: the long-lived objects shared by every request."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from algodeck.config import settings
from algodeck.database import ensure_sqlite_dir, make_session_factory
from algodeck.models import Base
from algodeck.ocr import TextExtractor
from algodeck.srs.intervals import IntervalConfigStore
from algodeck.srs.session import ReviewSession, SessionSummary
from algodeck.store.items import ItemRepository
from algodeck.store.search import (
    SearchCapability,
    SearchIndex,
    drop_fts_triggers,
    install_fts_index,
    probe_fts5,
)

logger = logging.getLogger(__name__)


async def init_db(engine: AsyncEngine, fts_enabled: bool = True) -> SearchCapability:
    """Create tables, probe for FTS5, and install or detach the search index."""
    ensure_sqlite_dir(engine.url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if fts_enabled:
        capability = await probe_fts5(engine)
    else:
        capability = SearchCapability(fts5=False, reason="disabled by settings")

    async with engine.begin() as conn:
        if capability.fts5:
            await install_fts_index(conn)
        else:
            await drop_fts_triggers(conn)

    logger.info("Database ready (full-text search: %s)", "on" if capability.fts5 else "off")
    return capability


@dataclass
class AppContext:
    """Owns the session factory, search index and live interval configuration."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    search: SearchIndex
    intervals: IntervalConfigStore
    items: ItemRepository

    def new_review_session(
        self,
        on_complete: Callable[[SessionSummary], None] | None = None,
    ) -> ReviewSession:
        return ReviewSession(
            repository=self.items,
            intervals=self.intervals,
            on_complete=on_complete,
        )


async def create_context(
    engine: AsyncEngine,
    fts_enabled: bool | None = None,
    extractor: TextExtractor | None = None,
) -> AppContext:
    """Initialize the database and load the interval configuration once."""
    if fts_enabled is None:
        fts_enabled = settings.search_fts_enabled
    capability = await init_db(engine, fts_enabled=fts_enabled)
    session_factory = make_session_factory(engine)

    intervals = IntervalConfigStore()
    async with session_factory() as db:
        await intervals.load(db)

    search = SearchIndex(capability)
    return AppContext(
        engine=engine,
        session_factory=session_factory,
        search=search,
        intervals=intervals,
        items=ItemRepository(search, extractor=extractor),
    )
