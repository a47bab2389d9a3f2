"""Append-only revision log and the statistics derived from it."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.config import today_iso, utcnow
from algodeck.models.enums import Rating
from algodeck.models.revision_log import RevisionLog

logger = logging.getLogger(__name__)

_review_day = func.date(RevisionLog.timestamp)


@dataclass
class DailyCount:
    day: str  # YYYY-MM-DD
    count: int


@dataclass
class ReviewStats:
    """Aggregates shown on the stats dashboard."""

    total_reviews: int = 0
    today_reviews: int = 0
    streak_days: int = 0
    unique_items_reviewed: int = 0
    avg_reviews_per_day: float = 0.0
    rating_breakdown: dict[Rating, int] = field(default_factory=dict)
    reviews_per_day: list[DailyCount] = field(default_factory=list)


async def log_review(
    db: AsyncSession,
    item_id: int,
    rating: Rating,
    now: datetime | None = None,
) -> int:
    """Append a rating event and return its id."""
    entry = RevisionLog(item_id=item_id, rating=rating, timestamp=now or utcnow())
    db.add(entry)
    await db.commit()
    return entry.id


async def get_by_item(db: AsyncSession, item_id: int) -> list[RevisionLog]:
    stmt = (
        select(RevisionLog)
        .where(RevisionLog.item_id == item_id)
        .order_by(RevisionLog.timestamp.desc(), RevisionLog.id.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_all(db: AsyncSession) -> list[RevisionLog]:
    stmt = select(RevisionLog).order_by(RevisionLog.timestamp.desc(), RevisionLog.id.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_total_reviews(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(RevisionLog.id)))).scalar() or 0


async def get_today_reviews(db: AsyncSession, now: datetime | None = None) -> int:
    stmt = select(func.count(RevisionLog.id)).where(_review_day == today_iso(now))
    return (await db.execute(stmt)).scalar() or 0


def compute_streak(review_days: Iterable[date], today: date) -> int:
    """Count consecutive review days ending today.

    Days are walked newest first; the first missing day ends the streak, so a
    streak is 0 until today has a review.
    """
    streak = 0
    for i, review_day in enumerate(sorted(set(review_days), reverse=True)):
        if review_day == today - timedelta(days=i):
            streak += 1
        else:
            break
    return streak


async def get_streak(db: AsyncSession, now: datetime | None = None) -> int:
    """Calculate the number of consecutive days with at least one review."""
    stmt = select(distinct(_review_day)).order_by(_review_day.desc())
    rows = (await db.execute(stmt)).scalars().all()
    days = [date.fromisoformat(str(value)) for value in rows if value]
    return compute_streak(days, (now or utcnow()).date())


async def get_reviews_per_day(
    db: AsyncSession,
    days: int = 7,
    now: datetime | None = None,
) -> list[DailyCount]:
    """Review counts per active day over the trailing window, oldest first."""
    cutoff = (now or utcnow()) - timedelta(days=days)
    stmt = (
        select(_review_day.label("day"), func.count(RevisionLog.id))
        .where(RevisionLog.timestamp >= cutoff)
        .group_by("day")
        .order_by("day")
    )
    return [DailyCount(day=str(day), count=count) for day, count in (await db.execute(stmt)).all()]


async def get_rating_breakdown(db: AsyncSession) -> dict[Rating, int]:
    """Count of log entries per rating; ratings never given count as 0."""
    stmt = select(RevisionLog.rating, func.count(RevisionLog.id)).group_by(RevisionLog.rating)
    breakdown = {rating: 0 for rating in Rating}
    for rating, count in (await db.execute(stmt)).all():
        breakdown[rating] = count
    return breakdown


async def get_unique_items_reviewed(db: AsyncSession) -> int:
    stmt = select(func.count(distinct(RevisionLog.item_id)))
    return (await db.execute(stmt)).scalar() or 0


async def get_avg_reviews_per_day(db: AsyncSession) -> float:
    """Average reviews per day, counting only days with at least one review."""
    per_day = select(func.count(RevisionLog.id).label("cnt")).group_by(_review_day).subquery()
    avg = (await db.execute(select(func.avg(per_day.c.cnt)))).scalar()
    return round(float(avg or 0), 1)


async def delete_all(db: AsyncSession) -> int:
    result = await db.execute(delete(RevisionLog))
    await db.commit()
    logger.info("Deleted %d revision log entries", result.rowcount)
    return result.rowcount


async def get_review_stats(
    db: AsyncSession,
    days: int = 7,
    now: datetime | None = None,
) -> ReviewStats:
    now = now or utcnow()
    return ReviewStats(
        total_reviews=await get_total_reviews(db),
        today_reviews=await get_today_reviews(db, now),
        streak_days=await get_streak(db, now),
        unique_items_reviewed=await get_unique_items_reviewed(db),
        avg_reviews_per_day=await get_avg_reviews_per_day(db),
        rating_breakdown=await get_rating_breakdown(db),
        reviews_per_day=await get_reviews_per_day(db, days, now),
    )
