"""Tests for the revision log and dashboard statistics."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.context import AppContext
from algodeck.models.enums import Rating
from algodeck.schemas import ItemCreate
from algodeck.store import revision_log
from algodeck.store.revision_log import compute_streak

NOW = datetime(2026, 3, 10, 18, 0)


async def _item(ctx: AppContext, db: AsyncSession, title: str = "Two Sum") -> int:
    return await ctx.items.create(db, ItemCreate(title=title))


def test_streak_counts_back_from_today() -> None:
    today = date(2026, 3, 10)
    days = [today - timedelta(days=n) for n in (0, 1, 2, 4)]
    assert compute_streak(days, today) == 3


def test_streak_is_zero_without_review_today() -> None:
    today = date(2026, 3, 10)
    assert compute_streak([today - timedelta(days=1), today - timedelta(days=2)], today) == 0
    assert compute_streak([], today) == 0


@pytest.mark.asyncio
async def test_streak_from_log(ctx: AppContext, db: AsyncSession) -> None:
    item_id = await _item(ctx, db)
    for days_ago in (0, 0, 1, 2, 4):
        await revision_log.log_review(db, item_id, Rating.GOOD, NOW - timedelta(days=days_ago))

    assert await revision_log.get_streak(db, NOW) == 3


@pytest.mark.asyncio
async def test_log_is_newest_first(ctx: AppContext, db: AsyncSession) -> None:
    item_id = await _item(ctx, db)
    first = await revision_log.log_review(db, item_id, Rating.AGAIN, NOW - timedelta(hours=2))
    second = await revision_log.log_review(db, item_id, Rating.GOOD, NOW)

    logs = await revision_log.get_by_item(db, item_id)
    assert [log.id for log in logs] == [second, first]
    assert [log.rating for log in logs] == [Rating.GOOD, Rating.AGAIN]
    assert len(await revision_log.get_all(db)) == 2


@pytest.mark.asyncio
async def test_review_stats(ctx: AppContext, db: AsyncSession) -> None:
    a = await _item(ctx, db, "A")
    b = await _item(ctx, db, "B")
    await _item(ctx, db, "never reviewed")

    await revision_log.log_review(db, a, Rating.GOOD, NOW)
    await revision_log.log_review(db, b, Rating.EASY, NOW)
    await revision_log.log_review(db, a, Rating.AGAIN, NOW - timedelta(days=1))
    await revision_log.log_review(db, a, Rating.GOOD, NOW - timedelta(days=30))

    stats = await revision_log.get_review_stats(db, days=7, now=NOW)

    assert stats.total_reviews == 4
    assert stats.today_reviews == 2
    assert stats.streak_days == 2
    assert stats.unique_items_reviewed == 2
    assert stats.avg_reviews_per_day == 1.3
    assert stats.rating_breakdown == {
        Rating.AGAIN: 1,
        Rating.HARD: 0,
        Rating.GOOD: 2,
        Rating.EASY: 1,
    }
    assert [(d.day, d.count) for d in stats.reviews_per_day] == [
        ("2026-03-09", 1),
        ("2026-03-10", 2),
    ]


@pytest.mark.asyncio
async def test_empty_stats(db: AsyncSession) -> None:
    stats = await revision_log.get_review_stats(db, now=NOW)
    assert stats.total_reviews == 0
    assert stats.streak_days == 0
    assert stats.avg_reviews_per_day == 0.0
    assert set(stats.rating_breakdown.values()) == {0}
    assert stats.reviews_per_day == []


@pytest.mark.asyncio
async def test_delete_all(ctx: AppContext, db: AsyncSession) -> None:
    item_id = await _item(ctx, db)
    await revision_log.log_review(db, item_id, Rating.HARD, NOW)
    await revision_log.log_review(db, item_id, Rating.GOOD, NOW)

    assert await revision_log.delete_all(db) == 2
    assert await revision_log.get_total_reviews(db) == 0
