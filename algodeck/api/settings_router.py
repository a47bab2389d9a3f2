"""API routes for the configurable first-step intervals."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_context, get_db
from algodeck.api.schemas import IntervalsResponse, IntervalsUpdate
from algodeck.config import settings
from algodeck.context import AppContext
from algodeck.models.enums import Rating
from algodeck.srs.intervals import IntervalConfig

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _to_response(config: IntervalConfig) -> IntervalsResponse:
    return IntervalsResponse(
        **config.model_dump(),
        labels={rating: config.format_label(rating) for rating in Rating},
    )


@router.get("/intervals", response_model=IntervalsResponse)
async def get_intervals(ctx: AppContext = Depends(get_context)) -> IntervalsResponse:
    return _to_response(ctx.intervals.current)


@router.get("/intervals/defaults", response_model=IntervalsResponse)
async def get_default_intervals(ctx: AppContext = Depends(get_context)) -> IntervalsResponse:
    return _to_response(ctx.intervals.defaults())


@router.patch("/intervals", response_model=IntervalsResponse)
async def update_intervals(
    update: IntervalsUpdate,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> IntervalsResponse:
    """Change some of the intervals; the next rating uses the new values."""
    config = await ctx.intervals.update(db, update.model_dump(exclude_unset=True))
    return _to_response(config)


@router.post("/intervals/reset", response_model=IntervalsResponse)
async def reset_intervals(
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> IntervalsResponse:
    config = await ctx.intervals.update(db, ctx.intervals.defaults().model_dump())
    return _to_response(config)


@router.get("/reminder")
async def get_reminder() -> dict[str, int]:
    """Daily reminder time (UTC) for clients that schedule their own notifications."""
    return {"hour": settings.reminder_hour, "minute": settings.reminder_minute}
