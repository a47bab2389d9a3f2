"""Database engine and session management."""

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from algodeck.config import settings
from algodeck.store.search import fold_text


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    # Cascades on solutions/revision_logs rely on SQLite enforcing foreign keys.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()
    dbapi_connection.create_function("fold_text", 1, fold_text, deterministic=True)


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with per-connection SQLite pragmas installed."""
    engine = create_async_engine(database_url, echo=echo)
    event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def ensure_sqlite_dir(database_url: str | URL) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


engine = make_engine(settings.database_url, echo=settings.debug)
