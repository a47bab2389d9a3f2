"""Review-state repository: items, their scheduling fields, and due queries."""

import json
import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from algodeck.config import today_iso
from algodeck.exceptions import ItemNotFoundError, NotebookNotFoundError
from algodeck.models.item import Item
from algodeck.models.notebook import Notebook
from algodeck.models.revision_log import RevisionLog
from algodeck.models.solution import Solution
from algodeck.ocr import NullTextExtractor, TextExtractor
from algodeck.schemas import ItemCreate, ItemPatch
from algodeck.store.search import SearchFilters, SearchIndex

logger = logging.getLogger(__name__)


def _due_clause(today: str, notebook_id: int | None) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = [
        or_(Item.next_review_date.is_(None), Item.next_review_date <= today)
    ]
    if notebook_id is not None:
        clauses.append(Item.notebook_id == notebook_id)
    return clauses


class ItemRepository:
    """CRUD over items plus the due-set queries that drive review sessions."""

    def __init__(
        self,
        search: SearchIndex,
        extractor: TextExtractor | None = None,
    ) -> None:
        self.search_index = search
        self.extractor = extractor or NullTextExtractor()

    async def create(self, db: AsyncSession, data: ItemCreate) -> int:
        """Insert a new item with a fresh scheduling state and return its id.

        When no OCR text is supplied but a screenshot is, the text extractor is
        asked for it; an empty result just means no text.
        """
        if data.notebook_id is not None and await db.get(Notebook, data.notebook_id) is None:
            raise NotebookNotFoundError(data.notebook_id)

        ocr_text = data.ocr_text
        if not ocr_text and data.screenshot_path:
            ocr_text = await self.extractor.extract_text(data.screenshot_path)

        item = Item(
            title=data.title,
            difficulty=data.difficulty,
            screenshot_path=data.screenshot_path,
            ocr_text=ocr_text,
            notes=data.notes,
            priority=data.priority,
            notebook_id=data.notebook_id,
            interval=0.0,
            ease_factor=2.5,
            repetition=0,
        )
        item.tag_list = data.tags
        db.add(item)
        await db.commit()
        logger.info("Created item %d: %s", item.id, item.title)
        return item.id

    async def get(self, db: AsyncSession, item_id: int, refresh: bool = False) -> Item | None:
        """Fetch an item; ``refresh`` re-reads columns already in the session."""
        return await db.get(Item, item_id, populate_existing=refresh)

    async def require(self, db: AsyncSession, item_id: int, refresh: bool = False) -> Item:
        item = await self.get(db, item_id, refresh=refresh)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def get_all(self, db: AsyncSession) -> list[Item]:
        stmt = select(Item).order_by(Item.created_at.desc(), Item.id.desc())
        return list((await db.execute(stmt)).scalars().all())

    async def get_recent(self, db: AsyncSession, limit: int = 5) -> list[Item]:
        stmt = select(Item).order_by(Item.created_at.desc(), Item.id.desc()).limit(limit)
        return list((await db.execute(stmt)).scalars().all())

    async def update(self, db: AsyncSession, item_id: int, patch: ItemPatch) -> None:
        """Write only the fields present in ``patch``.

        An empty patch returns without touching the database.

        Raises:
            ItemNotFoundError: If no item has this id.
        """
        changes = patch.changes()
        if not changes:
            return

        item = await self.require(db, item_id)
        notebook_id = changes.get("notebook_id")
        if notebook_id is not None and await db.get(Notebook, notebook_id) is None:
            raise NotebookNotFoundError(notebook_id)

        for name, value in changes.items():
            if name == "tags":
                item.tag_list = value
            else:
                setattr(item, name, value)
        await db.commit()
        logger.debug("Updated item %d: %s", item_id, sorted(changes))

    async def delete(self, db: AsyncSession, item_id: int) -> None:
        """Delete an item with its solutions and revision logs in one transaction."""
        await self.require(db, item_id)
        try:
            await db.execute(delete(Solution).where(Solution.item_id == item_id))
            await db.execute(delete(RevisionLog).where(RevisionLog.item_id == item_id))
            await db.execute(delete(Item).where(Item.id == item_id))
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.error("Rolled back deletion of item %d", item_id)
            raise
        logger.info("Deleted item %d", item_id)

    async def get_due_today(
        self,
        db: AsyncSession,
        notebook_id: int | None = None,
        today: str | None = None,
    ) -> list[Item]:
        """Items never scheduled or scheduled on/before today, most overdue first."""
        stmt = (
            select(Item)
            .where(*_due_clause(today or today_iso(), notebook_id))
            .order_by(Item.next_review_date.asc().nulls_first(), Item.id.asc())
        )
        return list((await db.execute(stmt)).scalars().all())

    async def get_due_count(
        self,
        db: AsyncSession,
        notebook_id: int | None = None,
        today: str | None = None,
    ) -> int:
        stmt = select(func.count(Item.id)).where(*_due_clause(today or today_iso(), notebook_id))
        return (await db.execute(stmt)).scalar() or 0

    async def count(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count(Item.id)))).scalar() or 0

    async def get_all_tags(self, db: AsyncSession) -> list[str]:
        """Distinct tags across all items, case-sensitive and sorted."""
        rows = (await db.execute(select(Item.tags).distinct())).scalars().all()
        tags: set[str] = set()
        for raw in rows:
            try:
                parsed = json.loads(raw or "[]")
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed tags value %r", raw)
                continue
            tags.update(tag for tag in parsed if isinstance(tag, str))
        return sorted(tags)

    async def search(
        self,
        db: AsyncSession,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[Item]:
        return await self.search_index.search(db, query, filters)
