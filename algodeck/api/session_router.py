"""API routes for review sessions."""

import logging
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_context, get_db
from algodeck.api.schemas import (
    CardResponse,
    RateRequest,
    RateResponse,
    SessionStartResponse,
    SessionSummaryResponse,
)
from algodeck.config import settings
from algodeck.context import AppContext
from algodeck.models.enums import Rating
from algodeck.schemas import ItemRead, SolutionRead
from algodeck.srs.session import ReviewSession
from algodeck.store import solutions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])

# In-memory session store, keyed by session id: (session, last touched)
_active_sessions: dict[str, tuple[ReviewSession, float]] = {}


def _prune_expired(now: float) -> None:
    expired = [
        sid
        for sid, (_, touched) in _active_sessions.items()
        if now - touched > settings.session_ttl_seconds
    ]
    for sid in expired:
        del _active_sessions[sid]
    if expired:
        logger.info("Dropped %d idle review session(s)", len(expired))


def _lookup(session_id: str) -> ReviewSession:
    entry = _active_sessions.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    review_session, _ = entry
    _active_sessions[session_id] = (review_session, time.monotonic())
    return review_session


def _summary_response(review_session: ReviewSession) -> SessionSummaryResponse:
    summary = review_session.summary()
    return SessionSummaryResponse(
        reviewed=summary.reviewed,
        ratings=summary.ratings,
        session_complete=review_session.is_complete,
    )


@router.post("/start", response_model=SessionStartResponse)
async def session_start(
    notebook_id: int | None = None,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> SessionStartResponse:
    """Start a review session over every item due today."""
    _prune_expired(time.monotonic())

    review_session = ctx.new_review_session()
    total = await review_session.load_due_cards(db, notebook_id=notebook_id)

    session_id = str(uuid.uuid4())
    _active_sessions[session_id] = (review_session, time.monotonic())

    return SessionStartResponse(
        session_id=session_id,
        total_cards=total,
        notebook_id=notebook_id,
        session_complete=review_session.is_complete,
    )


@router.get("/{session_id}/card", response_model=CardResponse)
async def session_card(
    session_id: str,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> CardResponse:
    """Get the card currently on screen."""
    review_session = _lookup(session_id)
    item = review_session.current_item
    if item is None:
        raise HTTPException(status_code=410, detail="Session is complete")

    solution_rows = None
    if review_session.revealed:
        solution_rows = [
            SolutionRead.model_validate(s) for s in await solutions.get_by_item(db, item.id)
        ]

    intervals = ctx.intervals.current
    return CardResponse(
        item=ItemRead.model_validate(item),
        position=review_session.position,
        total=review_session.total,
        remaining=review_session.remaining,
        revealed=review_session.revealed,
        solutions=solution_rows,
        rating_labels={rating: intervals.format_label(rating) for rating in Rating},
    )


@router.post("/{session_id}/reveal", response_model=CardResponse)
async def session_reveal(
    session_id: str,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> CardResponse:
    """Show the answer side of the current card."""
    _lookup(session_id).reveal()
    return await session_card(session_id, ctx, db)


@router.post("/{session_id}/flip", response_model=CardResponse)
async def session_flip(
    session_id: str,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> CardResponse:
    """Go back to the question side without rating."""
    _lookup(session_id).flip_back()
    return await session_card(session_id, ctx, db)


@router.post("/{session_id}/rate", response_model=RateResponse)
async def session_rate(
    session_id: str,
    request: RateRequest,
    db: AsyncSession = Depends(get_db),
) -> RateResponse:
    """Rate the current card and advance."""
    review_session = _lookup(session_id)
    outcome = await review_session.submit_rating(db, request.rating)
    state = outcome.result.state

    return RateResponse(
        item_id=outcome.item_id,
        rating=outcome.rating,
        repetition=state.repetition,
        interval=state.interval,
        ease_factor=state.ease_factor,
        next_review_date=outcome.result.next_review_date,
        remaining=outcome.remaining,
        session_complete=outcome.session_complete,
    )


@router.get("/{session_id}/summary", response_model=SessionSummaryResponse)
async def session_summary(session_id: str) -> SessionSummaryResponse:
    """Get rating counts for the session so far."""
    return _summary_response(_lookup(session_id))


@router.post("/{session_id}/end", response_model=SessionSummaryResponse)
async def session_end(session_id: str) -> SessionSummaryResponse:
    """End a session and clean up."""
    entry = _active_sessions.pop(session_id, None)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    review_session, _ = entry
    response = _summary_response(review_session)
    review_session.reset()
    return response
