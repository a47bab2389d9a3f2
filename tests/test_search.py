"""Tests for full-text search, filters and the substring fallback."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.context import AppContext
from algodeck.models.enums import Difficulty
from algodeck.schemas import ItemCreate, ItemPatch, NotebookCreate
from algodeck.store import notebooks
from algodeck.store.search import (
    SearchCapability,
    SearchFilters,
    SearchIndex,
    drop_fts_triggers,
    to_match_expression,
    tokenize_query,
)


async def _seed(ctx: AppContext, db: AsyncSession) -> dict[str, int]:
    notebook_id = await notebooks.create(db, NotebookCreate(name="Searching"))
    ids = {
        "binary": await ctx.items.create(
            db,
            ItemCreate(
                title="Binary Search",
                difficulty=Difficulty.EASY,
                tags=["array", "binary search"],
                notebook_id=notebook_id,
                priority=1,
            ),
        ),
        "rotated": await ctx.items.create(
            db,
            ItemCreate(
                title="Search in Rotated Sorted Array",
                difficulty=Difficulty.MEDIUM,
                tags=["array"],
                notes="find the pivot with binary search",
            ),
        ),
        "lru": await ctx.items.create(
            db,
            ItemCreate(
                title="LRU Cache",
                difficulty=Difficulty.MEDIUM,
                tags=["design", "hash map"],
                ocr_text="Design a data structure that follows the constraints of a cache",
            ),
        ),
    }
    ids["notebook"] = notebook_id
    return ids


def test_query_sanitization() -> None:
    assert tokenize_query("  binary   search ") == ["binary", "search"]
    assert to_match_expression(["binary", "se"]) == '"binary"* "se"*'
    assert to_match_expression(['c"++']) == '"c""++"*'


@pytest.mark.asyncio
async def test_prefix_match_across_fields(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)

    by_title = await ctx.items.search(db, "bin")
    assert {item.id for item in by_title} == {ids["binary"], ids["rotated"]}

    by_ocr = await ctx.items.search(db, "constr")
    assert [item.id for item in by_ocr] == [ids["lru"]]

    by_tag = await ctx.items.search(db, "hash")
    assert [item.id for item in by_tag] == [ids["lru"]]


@pytest.mark.asyncio
async def test_every_token_must_match(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)
    results = await ctx.items.search(db, "search rotated")
    assert [item.id for item in results] == [ids["rotated"]]
    assert await ctx.items.search(db, "search cache") == []


@pytest.mark.asyncio
async def test_filters(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)

    easy = await ctx.items.search(db, "search", SearchFilters(difficulty=Difficulty.EASY))
    assert [item.id for item in easy] == [ids["binary"]]

    tagged = await ctx.items.search(db, "", SearchFilters(tag="array"))
    assert {item.id for item in tagged} == {ids["binary"], ids["rotated"]}

    in_notebook = await ctx.items.search(db, "", SearchFilters(notebook_id=ids["notebook"]))
    assert [item.id for item in in_notebook] == [ids["binary"]]

    starred = await ctx.items.search(db, "", SearchFilters(starred=True))
    assert [item.id for item in starred] == [ids["binary"]]


@pytest.mark.asyncio
async def test_tag_filter_matches_whole_tags(ctx: AppContext, db: AsyncSession) -> None:
    await _seed(ctx, db)
    assert await ctx.items.search(db, "", SearchFilters(tag="arr")) == []


@pytest.mark.asyncio
async def test_tag_filter_is_case_sensitive(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)
    assert await ctx.items.search(db, "", SearchFilters(tag="Array")) == []
    results = await ctx.items.search(db, "", SearchFilters(tag="hash map"))
    assert [item.id for item in results] == [ids["lru"]]


@pytest.mark.asyncio
async def test_empty_query_returns_all_newest_first(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)
    results = await ctx.items.search(db, "   ")
    assert [item.id for item in results] == [ids["lru"], ids["rotated"], ids["binary"]]


@pytest.mark.asyncio
async def test_punctuation_does_not_raise(ctx: AppContext, db: AsyncSession) -> None:
    await _seed(ctx, db)
    assert await ctx.items.search(db, 'c++ "unbalanced (AND') == []


@pytest.mark.asyncio
async def test_index_follows_updates_and_deletes(ctx: AppContext, db: AsyncSession) -> None:
    ids = await _seed(ctx, db)

    await ctx.items.update(db, ids["lru"], ItemPatch(title="LFU Cache", ocr_text=""))
    assert [item.id for item in await ctx.items.search(db, "lfu")] == [ids["lru"]]
    assert await ctx.items.search(db, "lru") == []

    await ctx.items.delete(db, ids["lru"])
    assert await ctx.items.search(db, "lfu") == []


@pytest.mark.asyncio
async def test_failed_index_query_falls_back(
    ctx: AppContext,
    db: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ids = await _seed(ctx, db)

    async def broken(self, db, tokens, clauses):
        raise OperationalError("MATCH", {}, Exception("fts5: syntax error"))

    monkeypatch.setattr(SearchIndex, "_search_index", broken)
    results = await ctx.items.search(db, "rotated")
    assert [item.id for item in results] == [ids["rotated"]]


@pytest.mark.asyncio
async def test_substring_mode_is_superset(substring_ctx: AppContext) -> None:
    ctx = substring_ctx
    assert not ctx.search.available
    async with ctx.session_factory() as db:
        ids = await _seed(ctx, db)

        # Prefix matches are still found...
        results = await ctx.items.search(db, "bin")
        assert {item.id for item in results} == {ids["binary"], ids["rotated"]}

        # ...and so are mid-word substrings, case-insensitively.
        results = await ctx.items.search(db, "OTATED")
        assert [item.id for item in results] == [ids["rotated"]]


@pytest.mark.asyncio
async def test_rebuild_indexes_rows_missed_by_triggers(ctx: AppContext, db: AsyncSession) -> None:
    if not ctx.search.available:
        pytest.skip("SQLite build has no FTS5")

    async with ctx.engine.begin() as conn:
        await drop_fts_triggers(conn)
    item_id = await ctx.items.create(db, ItemCreate(title="Trapping Rain Water"))
    assert await ctx.items.search(db, "trapping") == []

    await ctx.search.rebuild(db)
    await db.commit()
    assert [item.id for item in await ctx.items.search(db, "trapping")] == [item_id]


@pytest.mark.asyncio
async def test_substring_scan_finds_what_the_index_finds(ctx: AppContext, db: AsyncSession) -> None:
    two_sum = await ctx.items.create(db, ItemCreate(title="Two Sum"))
    cafe = await ctx.items.create(db, ItemCreate(title="Café ordering", notes="queue-based design"))
    scan = SearchIndex(SearchCapability(fts5=False, reason="disabled"))

    for query, expected in [
        ("two-sum", {two_sum}),
        ("cafe", {cafe}),
        ("CAFÉ ord", {cafe}),
        ("queue_based", {cafe}),
    ]:
        indexed = {item.id for item in await ctx.items.search(db, query)}
        scanned = {item.id for item in await scan.search(db, query)}
        assert indexed <= scanned, query
        assert expected <= scanned, query
