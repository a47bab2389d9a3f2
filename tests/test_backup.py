"""Tests for JSON backup export and replace-all import."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.context import AppContext
from algodeck.exceptions import BackupValidationError
from algodeck.models.enums import Difficulty, Rating, SolutionTier
from algodeck.schemas import ItemCreate, ItemPatch, NotebookCreate, SolutionCreate
from algodeck.store import notebooks, revision_log, solutions
from algodeck.store.backup import export_backup, import_backup, validate_backup

NOW = datetime(2026, 3, 10, 12, 0)


def _payload() -> dict:
    return {
        "version": 1,
        "notebooks": [{"id": 3, "name": "Graphs", "color": "#00ff00"}],
        "items": [
            {
                "id": 10,
                "title": "Number of Islands",
                "difficulty": "Medium",
                "tags": '["graph", "dfs"]',
                "notebook_id": 3,
                "next_review_date": "2026-03-12",
                "interval": 2.0,
                "ease_factor": 2.22,
                "repetition": 2,
                "created_at": "2026-03-01T09:00:00Z",
            },
            {"id": 11, "title": "Clone Graph"},
        ],
        "solutions": [
            {"id": 1, "item_id": 10, "tier": "best", "code": "def solve(grid): ..."},
        ],
        "revision_logs": [
            {"id": 1, "item_id": 10, "rating": "good", "timestamp": "2026-03-10T12:00:00"},
        ],
    }


@pytest.mark.asyncio
async def test_import_replaces_everything(ctx: AppContext, db: AsyncSession) -> None:
    old = await ctx.items.create(db, ItemCreate(title="Old problem"))
    await revision_log.log_review(db, old, Rating.AGAIN, NOW)

    result = await import_backup(db, _payload(), ctx.search)

    assert result.message == "Imported 2 items, 1 solutions, 1 revision logs, 1 notebooks"
    assert await ctx.items.get(db, old, refresh=True) is None

    item = await ctx.items.require(db, 10, refresh=True)
    assert item.title == "Number of Islands"
    assert item.tag_list == ["graph", "dfs"]
    assert item.notebook_id == 3
    assert (item.repetition, item.interval, item.ease_factor) == (2, 2.0, 2.22)
    assert item.created_at == datetime(2026, 3, 1, 9, 0)

    defaults = await ctx.items.require(db, 11, refresh=True)
    assert defaults.difficulty == Difficulty.MEDIUM
    assert defaults.ease_factor == 2.5
    assert defaults.next_review_date is None

    [solution] = await solutions.get_by_item(db, 10)
    assert solution.tier == SolutionTier.BEST
    assert await revision_log.get_total_reviews(db) == 1


@pytest.mark.asyncio
async def test_imported_items_are_searchable(ctx: AppContext, db: AsyncSession) -> None:
    await import_backup(db, _payload(), ctx.search)
    results = await ctx.items.search(db, "islands")
    assert [item.id for item in results] == [10]


@pytest.mark.asyncio
async def test_legacy_questions_key(ctx: AppContext, db: AsyncSession) -> None:
    payload = _payload()
    payload["questions"] = payload.pop("items")
    payload["solutions"][0]["question_id"] = payload["solutions"][0].pop("item_id")

    result = await import_backup(db, payload, ctx.search)
    assert result.items == 2
    assert len(await solutions.get_by_item(db, 10)) == 1


@pytest.mark.asyncio
async def test_invalid_backup_changes_nothing(ctx: AppContext, db: AsyncSession) -> None:
    keep = await ctx.items.create(db, ItemCreate(title="Keep me"))
    payload = _payload()
    del payload["items"]

    with pytest.raises(BackupValidationError, match="Invalid backup: missing items array"):
        await import_backup(db, payload, ctx.search)
    assert (await ctx.items.require(db, keep)).title == "Keep me"


@pytest.mark.parametrize(
    ("mutate", "message"),
    [
        (lambda p: p.pop("solutions"), "missing solutions array"),
        (lambda p: p.update(revision_logs={}), "missing revision_logs array"),
        (lambda p: p["items"][0].update(ease_factor=0.5), "items.0.ease_factor"),
        (lambda p: p["revision_logs"][0].update(rating="meh"), "revision_logs.0.rating"),
        (lambda p: p["solutions"][0].update(item_id=99), "solution 1 references unknown item 99"),
        (lambda p: p["items"][1].update(notebook_id=42), "item 11 references unknown notebook 42"),
        (lambda p: p["items"][0].update(title="  "), "items.0.title"),
        (lambda p: p["items"][0].update(priority=5), "items.0.priority"),
        (lambda p: p["items"][0].update(next_review_date="12/03/2026"), "items.0.next_review_date"),
    ],
)
def test_validate_backup_errors(mutate, message: str) -> None:
    payload = _payload()
    mutate(payload)
    with pytest.raises(BackupValidationError, match=message):
        validate_backup(payload)


def test_validate_backup_rejects_non_object() -> None:
    with pytest.raises(BackupValidationError):
        validate_backup([])


@pytest.mark.asyncio
async def test_export_then_import_preserves_data(ctx: AppContext, db: AsyncSession) -> None:
    notebook_id = await notebooks.create(db, NotebookCreate(name="Trees"))
    item_id = await ctx.items.create(
        db, ItemCreate(title="Invert Binary Tree", tags=["tree"], notebook_id=notebook_id)
    )
    await ctx.items.update(db, item_id, ItemPatch(repetition=3, interval=6.0, next_review_date="2026-03-16"))
    await solutions.create(db, SolutionCreate(item_id=item_id, tier=SolutionTier.OPTIMIZED, code="..."))
    await revision_log.log_review(db, item_id, Rating.EASY, NOW)

    exported = (await export_backup(db)).model_dump(mode="json")
    assert exported["version"] == 1
    assert exported["items"][0]["tags"] == ["tree"]

    await import_backup(db, exported, ctx.search)
    item = await ctx.items.require(db, item_id, refresh=True)
    assert item.title == "Invert Binary Tree"
    assert item.notebook_id == notebook_id
    assert (item.repetition, item.interval, item.next_review_date) == (3, 6.0, "2026-03-16")
    assert [log.rating for log in await revision_log.get_by_item(db, item_id)] == [Rating.EASY]
