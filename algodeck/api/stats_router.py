"""API routes for dashboard statistics."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_context, get_db
from algodeck.api.schemas import DailyCountResponse, StatsResponse
from algodeck.context import AppContext
from algodeck.store import revision_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(
    days: int = Query(default=7, ge=1, le=365),
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> StatsResponse:
    """Get overall review statistics for the dashboard."""
    review_stats = await revision_log.get_review_stats(db, days=days)

    return StatsResponse(
        total_items=await ctx.items.count(db),
        due_today=await ctx.items.get_due_count(db),
        streak_days=review_stats.streak_days,
        total_reviews=review_stats.total_reviews,
        today_reviews=review_stats.today_reviews,
        unique_items_reviewed=review_stats.unique_items_reviewed,
        avg_reviews_per_day=review_stats.avg_reviews_per_day,
        rating_breakdown=review_stats.rating_breakdown,
        reviews_per_day=[
            DailyCountResponse(day=entry.day, count=entry.count)
            for entry in review_stats.reviews_per_day
        ],
    )
