"""Full-text search over items with a substring-scan fallback.

The index is an external-content SQLite FTS5 table (``items_fts``) kept in
sync with ``items`` by triggers, so every insert, update and delete updates
the index inside the same transaction. Availability is probed once at
startup; when FTS5 is missing, or a single query fails to parse, the query is
answered by a LIKE scan over the same four fields instead.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass

from sqlalchemy import column, func, literal_column, or_, select, table, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from algodeck.models.enums import Difficulty
from algodeck.models.item import Item

logger = logging.getLogger(__name__)

FTS_TABLE = "items_fts"
INDEXED_FIELDS = ("title", "tags", "ocr_text", "notes")

_CREATE_FTS_TABLE = f"""
CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} USING fts5(
    title, tags, ocr_text, notes,
    content='items',
    content_rowid='id',
    tokenize='unicode61'
)
"""

_TRIGGERS = {
    "items_fts_ai": f"""
CREATE TRIGGER IF NOT EXISTS items_fts_ai AFTER INSERT ON items BEGIN
    INSERT INTO {FTS_TABLE}(rowid, title, tags, ocr_text, notes)
    VALUES (new.id, new.title, new.tags, new.ocr_text, new.notes);
END
""",
    "items_fts_ad": f"""
CREATE TRIGGER IF NOT EXISTS items_fts_ad AFTER DELETE ON items BEGIN
    INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, tags, ocr_text, notes)
    VALUES ('delete', old.id, old.title, old.tags, old.ocr_text, old.notes);
END
""",
    # Scheduling updates don't touch indexed text, so only reindex on text changes.
    "items_fts_au": f"""
CREATE TRIGGER IF NOT EXISTS items_fts_au AFTER UPDATE OF title, tags, ocr_text, notes ON items BEGIN
    INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, tags, ocr_text, notes)
    VALUES ('delete', old.id, old.title, old.tags, old.ocr_text, old.notes);
    INSERT INTO {FTS_TABLE}(rowid, title, tags, ocr_text, notes)
    VALUES (new.id, new.title, new.tags, new.ocr_text, new.notes);
END
""",
}

_fts = table(FTS_TABLE, column("rowid"), column("rank"))
_WORD = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class SearchCapability:
    """Result of the startup probe for the FTS5 extension."""

    fts5: bool
    reason: str = ""


@dataclass
class SearchFilters:
    """Structured filters AND-ed with the text query."""

    difficulty: Difficulty | None = None
    tag: str | None = None
    notebook_id: int | None = None
    starred: bool | None = None


async def probe_fts5(engine: AsyncEngine) -> SearchCapability:
    """Check whether this SQLite build ships the FTS5 extension."""
    async with engine.connect() as conn:
        try:
            await conn.exec_driver_sql("CREATE VIRTUAL TABLE temp.fts5_probe USING fts5(x)")
            await conn.exec_driver_sql("DROP TABLE temp.fts5_probe")
        except OperationalError as exc:
            logger.warning("FTS5 unavailable, search will use substring scans: %s", exc)
            return SearchCapability(fts5=False, reason=str(exc.orig))
    return SearchCapability(fts5=True)


async def install_fts_index(conn: AsyncConnection) -> None:
    """Create the FTS table and sync triggers, rebuilding if either was missing."""
    existing = await conn.execute(
        text("SELECT name FROM sqlite_master WHERE name = :fts OR name IN ('items_fts_ai', 'items_fts_ad', 'items_fts_au')"),
        {"fts": FTS_TABLE},
    )
    present = {row[0] for row in existing}

    await conn.exec_driver_sql(_CREATE_FTS_TABLE)
    for ddl in _TRIGGERS.values():
        await conn.exec_driver_sql(ddl)

    if present != {FTS_TABLE, *_TRIGGERS}:
        await conn.exec_driver_sql(f"INSERT INTO {FTS_TABLE}({FTS_TABLE}) VALUES ('rebuild')")
        logger.info("Built full-text index %s", FTS_TABLE)


async def drop_fts_triggers(conn: AsyncConnection) -> None:
    """Stop maintaining the index; it is rebuilt when FTS5 is enabled again."""
    for name in _TRIGGERS:
        await conn.exec_driver_sql(f"DROP TRIGGER IF EXISTS {name}")


def tokenize_query(query: str) -> list[str]:
    return query.split()


def fold_text(value: str | None) -> str | None:
    """Lowercase and strip diacritics, as the unicode61 tokenizer does: ``Café`` -> ``cafe``."""
    if value is None:
        return None
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def split_token(token: str) -> list[str]:
    """Break a query token into the alphanumeric runs the index tokenizer would see."""
    return _WORD.findall(fold_text(token) or "")


def to_match_expression(tokens: list[str]) -> str:
    """Quote each token as an FTS5 prefix term: ``binary search`` -> ``"binary"* "search"*``."""
    return " ".join('"' + token.replace('"', '""') + '"*' for token in tokens)


def filter_clauses(filters: SearchFilters | None) -> list[ColumnElement[bool]]:
    if filters is None:
        return []
    clauses: list[ColumnElement[bool]] = []
    if filters.difficulty is not None:
        clauses.append(Item.difficulty == filters.difficulty)
    if filters.tag:
        # Exact, case-sensitive match against one element of the JSON array.
        tag_values = func.json_each(Item.tags).table_valued("value")
        clauses.append(select(tag_values.c.value).where(tag_values.c.value == filters.tag).exists())
    if filters.notebook_id is not None:
        clauses.append(Item.notebook_id == filters.notebook_id)
    if filters.starred is not None:
        clauses.append(Item.priority == (1 if filters.starred else 0))
    return clauses


class SearchIndex:
    """Query interface over the items index."""

    def __init__(self, capability: SearchCapability) -> None:
        self.capability = capability

    @property
    def available(self) -> bool:
        return self.capability.fts5

    async def search(
        self,
        db: AsyncSession,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[Item]:
        """Return items matching every query token and all filters.

        An empty or whitespace-only query applies the filters alone.
        """
        tokens = tokenize_query(query)
        clauses = filter_clauses(filters)

        if not tokens:
            stmt = select(Item).where(*clauses).order_by(Item.created_at.desc(), Item.id.desc())
            return list((await db.execute(stmt)).scalars().all())

        if self.available:
            try:
                return await self._search_index(db, tokens, clauses)
            except OperationalError as exc:
                logger.debug("FTS query %r failed, falling back to substring scan: %s", query, exc)

        return await self._search_substring(db, tokens, clauses)

    async def _search_index(
        self,
        db: AsyncSession,
        tokens: list[str],
        clauses: list[ColumnElement[bool]],
    ) -> list[Item]:
        stmt = (
            select(Item)
            .join(_fts, _fts.c.rowid == Item.id)
            .where(literal_column(FTS_TABLE).op("MATCH")(to_match_expression(tokens)))
            .where(*clauses)
            .order_by(_fts.c.rank, Item.id)
        )
        return list((await db.execute(stmt)).scalars().all())

    async def _search_substring(
        self,
        db: AsyncSession,
        tokens: list[str],
        clauses: list[ColumnElement[bool]],
    ) -> list[Item]:
        # Same case and diacritic folding and word splitting as the unicode61 tokenizer.
        fields = [func.fold_text(getattr(Item, name)) for name in INDEXED_FIELDS]
        pieces = [piece for token in tokens for piece in split_token(token)]
        token_clauses = [or_(*(field.like(f"%{piece}%") for field in fields)) for piece in pieces]
        stmt = (
            select(Item)
            .where(*token_clauses, *clauses)
            .order_by(Item.created_at.desc(), Item.id.desc())
        )
        return list((await db.execute(stmt)).scalars().all())

    async def rebuild(self, db: AsyncSession) -> None:
        """Rebuild the index from ``items``; required after bulk loads."""
        if not self.available:
            logger.debug("Skipping index rebuild: FTS5 unavailable")
            return
        await db.execute(text(f"INSERT INTO {FTS_TABLE}({FTS_TABLE}) VALUES ('rebuild')"))
        logger.info("Rebuilt full-text index %s", FTS_TABLE)
