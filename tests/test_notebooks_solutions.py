"""Tests for notebooks, tiered solutions and the persisted interval settings."""

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.context import AppContext
from algodeck.exceptions import ItemNotFoundError, NotebookNotFoundError, SolutionNotFoundError
from algodeck.models.app_setting import AppSetting
from algodeck.models.enums import SolutionTier
from algodeck.schemas import ItemCreate, NotebookCreate, NotebookPatch, SolutionCreate, SolutionPatch
from algodeck.srs.intervals import DEFAULT_INTERVALS, SETTINGS_KEY, IntervalConfigStore
from algodeck.store import notebooks, solutions

# --- Notebooks ---


@pytest.mark.asyncio
async def test_notebooks_sorted_by_name(db: AsyncSession) -> None:
    await notebooks.create(db, NotebookCreate(name="Trees"))
    await notebooks.create(db, NotebookCreate(name="Arrays", color="#ff0000"))

    names = [n.name for n in await notebooks.get_all(db)]
    assert names == ["Arrays", "Trees"]


@pytest.mark.asyncio
async def test_delete_notebook_unassigns_items(ctx: AppContext, db: AsyncSession) -> None:
    notebook_id = await notebooks.create(db, NotebookCreate(name="Heaps"))
    item_id = await ctx.items.create(db, ItemCreate(title="Top K Frequent", notebook_id=notebook_id))
    assert await notebooks.get_item_count(db, notebook_id) == 1

    await notebooks.delete(db, notebook_id)

    assert await notebooks.get(db, notebook_id) is None
    item = await ctx.items.require(db, item_id, refresh=True)
    assert item.notebook_id is None


@pytest.mark.asyncio
async def test_update_notebook(db: AsyncSession) -> None:
    notebook_id = await notebooks.create(db, NotebookCreate(name="Stacks"))
    await notebooks.update(db, notebook_id, NotebookPatch(color="#123456"))

    notebook = await notebooks.get(db, notebook_id)
    assert (notebook.name, notebook.color) == ("Stacks", "#123456")

    with pytest.raises(NotebookNotFoundError):
        await notebooks.update(db, 999, NotebookPatch(name="Queues"))
    with pytest.raises(NotebookNotFoundError):
        await notebooks.delete(db, 999)


def test_notebook_name_required() -> None:
    with pytest.raises(ValidationError):
        NotebookCreate(name="   ")


# --- Solutions ---


@pytest.mark.asyncio
async def test_solutions_ordered_by_tier(ctx: AppContext, db: AsyncSession) -> None:
    item_id = await ctx.items.create(db, ItemCreate(title="Two Sum"))
    best = await solutions.create(db, SolutionCreate(item_id=item_id, tier=SolutionTier.BEST))
    brute = await solutions.create(db, SolutionCreate(item_id=item_id, tier=SolutionTier.BRUTE))
    optimized = await solutions.create(db, SolutionCreate(item_id=item_id, tier=SolutionTier.OPTIMIZED))

    ordered = await solutions.get_by_item(db, item_id)
    assert [s.id for s in ordered] == [brute, optimized, best]
    assert [s.id for s in await solutions.get_by_tier(db, item_id, SolutionTier.BEST)] == [best]
    assert len(await solutions.get_all(db)) == 3


@pytest.mark.asyncio
async def test_solution_for_missing_item(db: AsyncSession) -> None:
    with pytest.raises(ItemNotFoundError):
        await solutions.create(db, SolutionCreate(item_id=5))


@pytest.mark.asyncio
async def test_update_and_delete_solution(ctx: AppContext, db: AsyncSession) -> None:
    item_id = await ctx.items.create(db, ItemCreate(title="Valid Parentheses"))
    solution_id = await solutions.create(
        db, SolutionCreate(item_id=item_id, code="stack = []", time_complexity="O(n)")
    )

    await solutions.update(db, solution_id, SolutionPatch(space_complexity="O(n)"))
    solution = await solutions.get(db, solution_id)
    assert (solution.time_complexity, solution.space_complexity) == ("O(n)", "O(n)")
    assert solution.language == "python"

    await solutions.delete(db, solution_id)
    assert await solutions.get(db, solution_id) is None
    with pytest.raises(SolutionNotFoundError):
        await solutions.delete(db, solution_id)


# --- Interval settings ---


@pytest.mark.asyncio
async def test_intervals_persist_across_loads(ctx: AppContext, db: AsyncSession) -> None:
    assert ctx.intervals.current == DEFAULT_INTERVALS

    updated = await ctx.intervals.update(db, {"again": 2, "easy": 5})
    assert (updated.again, updated.hard, updated.good, updated.easy) == (2, 10, 1, 5)

    fresh = IntervalConfigStore()
    assert await fresh.load(db) == updated


@pytest.mark.asyncio
async def test_invalid_interval_update_keeps_current(ctx: AppContext, db: AsyncSession) -> None:
    with pytest.raises(ValidationError):
        await ctx.intervals.update(db, {"good": -1})
    with pytest.raises(ValidationError):
        await ctx.intervals.update(db, {"medium": 3})
    assert ctx.intervals.current == DEFAULT_INTERVALS


@pytest.mark.asyncio
async def test_corrupt_stored_intervals_fall_back_to_defaults(db: AsyncSession) -> None:
    row = await db.get(AppSetting, SETTINGS_KEY)
    row.value = "{not json"
    await db.commit()

    store = IntervalConfigStore()
    assert await store.load(db) == DEFAULT_INTERVALS
