"""Notebooks group items; deleting one leaves its items unassigned."""

import logging

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, select, update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.exceptions import NotebookNotFoundError
from algodeck.models.item import Item
from algodeck.models.notebook import Notebook
from algodeck.schemas import NotebookCreate, NotebookPatch

logger = logging.getLogger(__name__)


async def get_all(db: AsyncSession) -> list[Notebook]:
    stmt = select(Notebook).order_by(Notebook.name.asc(), Notebook.id.asc())
    return list((await db.execute(stmt)).scalars().all())


async def get(db: AsyncSession, notebook_id: int) -> Notebook | None:
    return await db.get(Notebook, notebook_id)


async def create(db: AsyncSession, data: NotebookCreate) -> int:
    notebook = Notebook(name=data.name, color=data.color)
    db.add(notebook)
    await db.commit()
    logger.info("Created notebook %d: %s", notebook.id, notebook.name)
    return notebook.id


async def update(db: AsyncSession, notebook_id: int, patch: NotebookPatch) -> None:
    changes = patch.changes()
    if not changes:
        return
    notebook = await db.get(Notebook, notebook_id)
    if notebook is None:
        raise NotebookNotFoundError(notebook_id)
    for name, value in changes.items():
        setattr(notebook, name, value)
    await db.commit()


async def delete(db: AsyncSession, notebook_id: int) -> None:
    """Unassign the notebook's items, then delete it, in one transaction."""
    if await db.get(Notebook, notebook_id) is None:
        raise NotebookNotFoundError(notebook_id)
    try:
        await db.execute(
            sql_update(Item).where(Item.notebook_id == notebook_id).values(notebook_id=None)
        )
        await db.execute(sql_delete(Notebook).where(Notebook.id == notebook_id))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Deleted notebook %d", notebook_id)


async def get_item_count(db: AsyncSession, notebook_id: int) -> int:
    stmt = select(func.count(Item.id)).where(Item.notebook_id == notebook_id)
    return (await db.execute(stmt)).scalar() or 0
