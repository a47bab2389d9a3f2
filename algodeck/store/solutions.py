"""Tiered solutions attached to items."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.exceptions import ItemNotFoundError, SolutionNotFoundError
from algodeck.models.enums import SolutionTier
from algodeck.models.item import Item
from algodeck.models.solution import Solution
from algodeck.schemas import SolutionCreate, SolutionPatch

logger = logging.getLogger(__name__)


async def get_by_item(db: AsyncSession, item_id: int) -> list[Solution]:
    """Solutions for an item, brute -> optimized -> best, oldest first within a tier."""
    stmt = (
        select(Solution)
        .where(Solution.item_id == item_id)
        .order_by(Solution.created_at.asc(), Solution.id.asc())
    )
    solutions = (await db.execute(stmt)).scalars().all()
    return sorted(solutions, key=lambda s: s.tier.rank)


async def get_by_tier(db: AsyncSession, item_id: int, tier: SolutionTier) -> list[Solution]:
    stmt = (
        select(Solution)
        .where(Solution.item_id == item_id, Solution.tier == tier)
        .order_by(Solution.created_at.asc(), Solution.id.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_all(db: AsyncSession) -> list[Solution]:
    stmt = select(Solution).order_by(Solution.item_id, Solution.created_at, Solution.id)
    return list((await db.execute(stmt)).scalars().all())


async def get(db: AsyncSession, solution_id: int) -> Solution | None:
    return await db.get(Solution, solution_id)


async def create(db: AsyncSession, data: SolutionCreate) -> int:
    if await db.get(Item, data.item_id) is None:
        raise ItemNotFoundError(data.item_id)
    solution = Solution(**data.model_dump())
    db.add(solution)
    await db.commit()
    logger.info("Added %s solution %d to item %d", solution.tier.value, solution.id, data.item_id)
    return solution.id


async def update(db: AsyncSession, solution_id: int, patch: SolutionPatch) -> None:
    changes = patch.changes()
    if not changes:
        return
    solution = await db.get(Solution, solution_id)
    if solution is None:
        raise SolutionNotFoundError(solution_id)
    for name, value in changes.items():
        setattr(solution, name, value)
    await db.commit()


async def delete(db: AsyncSession, solution_id: int) -> None:
    solution = await db.get(Solution, solution_id)
    if solution is None:
        raise SolutionNotFoundError(solution_id)
    await db.delete(solution)
    await db.commit()
