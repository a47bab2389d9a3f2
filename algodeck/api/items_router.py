"""API routes for items, their solutions and their review history."""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_context, get_db
from algodeck.context import AppContext
from algodeck.exceptions import SolutionNotFoundError
from algodeck.models.enums import Difficulty
from algodeck.schemas import (
    ItemCreate,
    ItemPatch,
    ItemRead,
    RevisionLogRead,
    SolutionCreate,
    SolutionPatch,
    SolutionRead,
)
from algodeck.store import revision_log, solutions
from algodeck.store.search import SearchFilters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/items", tags=["items"])
solutions_router = APIRouter(prefix="/api/solutions", tags=["solutions"])


async def _solution_read(db: AsyncSession, solution_id: int) -> SolutionRead:
    solution = await solutions.get(db, solution_id)
    if solution is None:
        raise SolutionNotFoundError(solution_id)
    return SolutionRead.model_validate(solution)


@router.get("", response_model=list[ItemRead])
async def list_items(
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[ItemRead]:
    return [ItemRead.model_validate(item) for item in await ctx.items.get_all(db)]


@router.get("/search", response_model=list[ItemRead])
async def search_items(
    q: str = "",
    difficulty: Difficulty | None = None,
    tag: str | None = None,
    notebook_id: int | None = None,
    starred: bool | None = None,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[ItemRead]:
    """Full-text search with optional structured filters."""
    filters = SearchFilters(difficulty=difficulty, tag=tag, notebook_id=notebook_id, starred=starred)
    return [ItemRead.model_validate(item) for item in await ctx.items.search(db, q, filters)]


@router.get("/tags", response_model=list[str])
async def list_tags(
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    return await ctx.items.get_all_tags(db)


@router.get("/recent", response_model=list[ItemRead])
async def recent_items(
    limit: int = 5,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[ItemRead]:
    return [ItemRead.model_validate(item) for item in await ctx.items.get_recent(db, limit)]


@router.get("/due", response_model=list[ItemRead])
async def due_items(
    notebook_id: int | None = None,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[ItemRead]:
    """Items due today, most overdue first."""
    due = await ctx.items.get_due_today(db, notebook_id=notebook_id)
    return [ItemRead.model_validate(item) for item in due]


@router.post("", response_model=ItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> ItemRead:
    item_id = await ctx.items.create(db, data)
    return ItemRead.model_validate(await ctx.items.require(db, item_id))


@router.get("/{item_id}", response_model=ItemRead)
async def get_item(
    item_id: int,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> ItemRead:
    return ItemRead.model_validate(await ctx.items.require(db, item_id))


@router.patch("/{item_id}", response_model=ItemRead)
async def update_item(
    item_id: int,
    patch: ItemPatch,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> ItemRead:
    """Apply a partial update; absent fields are left untouched."""
    await ctx.items.update(db, item_id, patch)
    return ItemRead.model_validate(await ctx.items.require(db, item_id, refresh=True))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await ctx.items.delete(db, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{item_id}/solutions", response_model=list[SolutionRead])
async def item_solutions(
    item_id: int,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[SolutionRead]:
    """Solutions for an item, brute force first."""
    await ctx.items.require(db, item_id)
    return [SolutionRead.model_validate(s) for s in await solutions.get_by_item(db, item_id)]


@router.get("/{item_id}/revisions", response_model=list[RevisionLogRead])
async def item_revisions(
    item_id: int,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> list[RevisionLogRead]:
    await ctx.items.require(db, item_id)
    return [RevisionLogRead.model_validate(log) for log in await revision_log.get_by_item(db, item_id)]


@solutions_router.post("", response_model=SolutionRead, status_code=status.HTTP_201_CREATED)
async def create_solution(
    data: SolutionCreate,
    db: AsyncSession = Depends(get_db),
) -> SolutionRead:
    solution_id = await solutions.create(db, data)
    return await _solution_read(db, solution_id)


@solutions_router.patch("/{solution_id}", response_model=SolutionRead)
async def update_solution(
    solution_id: int,
    patch: SolutionPatch,
    db: AsyncSession = Depends(get_db),
) -> SolutionRead:
    await solutions.update(db, solution_id, patch)
    return await _solution_read(db, solution_id)


@solutions_router.delete("/{solution_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_solution(
    solution_id: int,
    db: AsyncSession = Depends(get_db),
) -> Response:
    await solutions.delete(db, solution_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
