"""Review session controller.

Holds the queue of due items for one sitting and turns each submitted rating
into a scheduling update plus a revision log entry. The queue is fixed when
the session loads; a failing rating schedules a later session, it never
re-inserts the item into this one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.config import utcnow
from algodeck.exceptions import ItemNotFoundError, SessionStateError
from algodeck.models.enums import Rating
from algodeck.models.item import Item
from algodeck.schemas import ItemPatch
from algodeck.srs.intervals import IntervalConfigStore
from algodeck.srs.sm2 import ScheduleResult, SchedulingState, compute_next
from algodeck.store import revision_log
from algodeck.store.items import ItemRepository

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    IDLE = "idle"
    IN_SESSION = "in_session"
    COMPLETE = "complete"


@dataclass
class SessionSummary:
    """Emitted once when the last card of a session has been rated."""

    reviewed: int
    ratings: dict[Rating, int]


@dataclass
class RatingOutcome:
    """What happened to the rated item."""

    item_id: int
    rating: Rating
    result: ScheduleResult
    remaining: int
    session_complete: bool


@dataclass
class ReviewSession:
    """State machine over one review sitting: IDLE -> IN_SESSION -> COMPLETE."""

    repository: ItemRepository
    intervals: IntervalConfigStore
    on_complete: Callable[[SessionSummary], None] | None = None
    phase: SessionPhase = SessionPhase.IDLE
    revealed: bool = False
    notebook_id: int | None = None
    ratings: dict[Rating, int] = field(default_factory=lambda: {rating: 0 for rating in Rating})
    _queue: list[Item] = field(default_factory=list)
    _position: int = 0

    @property
    def total(self) -> int:
        return len(self._queue)

    @property
    def position(self) -> int:
        return self._position

    @property
    def reviewed(self) -> int:
        return sum(self.ratings.values())

    @property
    def remaining(self) -> int:
        """Return the number of cards not yet rated, including the current one."""
        if self.phase != SessionPhase.IN_SESSION:
            return 0
        return len(self._queue) - self._position

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    @property
    def current_item(self) -> Item | None:
        """Return the item being shown, or None outside an active session."""
        if self.phase != SessionPhase.IN_SESSION:
            return None
        return self._queue[self._position]

    async def load_due_cards(self, db: AsyncSession, notebook_id: int | None = None) -> int:
        """Start a session over everything due today.

        Returns:
            The number of queued items. An empty due set completes immediately.
        """
        if self.phase == SessionPhase.IN_SESSION:
            raise SessionStateError("A review session is already in progress")

        self._queue = await self.repository.get_due_today(db, notebook_id=notebook_id)
        self._position = 0
        self.revealed = False
        self.notebook_id = notebook_id
        self.ratings = {rating: 0 for rating in Rating}
        self.phase = SessionPhase.IN_SESSION if self._queue else SessionPhase.COMPLETE

        logger.info(
            "Loaded review session: %d due item(s)%s",
            len(self._queue),
            f" in notebook {notebook_id}" if notebook_id is not None else "",
        )
        return len(self._queue)

    def reveal(self) -> None:
        """Show the answer side of the current card."""
        self._require_active()
        if self.revealed:
            raise SessionStateError("Answer is already revealed")
        self.revealed = True

    def flip_back(self) -> None:
        """Return to the question side without rating."""
        self._require_active()
        if not self.revealed:
            raise SessionStateError("Answer is not revealed")
        self.revealed = False

    async def submit_rating(
        self,
        db: AsyncSession,
        rating: Rating,
        now: datetime | None = None,
    ) -> RatingOutcome:
        """Rate the current card, persist its new schedule, and advance.

        The scheduling update is committed before the log entry is written, so a
        failed update never leaves a log entry behind.

        Raises:
            SessionStateError: If no card is active or the answer is hidden.
            ItemNotFoundError: If the item was deleted since the session loaded.
                The session moves past it without logging a review.
        """
        self._require_active()
        if not self.revealed:
            raise SessionStateError("Reveal the answer before rating")

        now = now or utcnow()
        queued = self._queue[self._position]
        try:
            item = await self.repository.require(db, queued.id, refresh=True)
        except ItemNotFoundError:
            logger.warning("Item %d was deleted during the session, skipping it", queued.id)
            self.revealed = False
            self._advance()
            raise
        state = SchedulingState(
            repetition=item.repetition,
            interval=item.interval,
            ease_factor=item.ease_factor,
        )
        result = compute_next(rating, state, self.intervals.current, now)

        await self.repository.update(
            db,
            item.id,
            ItemPatch(
                repetition=result.state.repetition,
                interval=result.state.interval,
                ease_factor=result.state.ease_factor,
                next_review_date=result.next_review_date,
                last_reviewed=now,
            ),
        )
        await revision_log.log_review(db, item.id, rating, now)

        self.ratings[rating] += 1
        self.revealed = False
        logger.debug(
            "Rated item %d %s: rep=%d interval=%.4f ease=%.2f next=%s",
            item.id,
            rating.value,
            result.state.repetition,
            result.state.interval,
            result.state.ease_factor,
            result.next_review_date,
        )

        self._advance()

        return RatingOutcome(
            item_id=item.id,
            rating=rating,
            result=result,
            remaining=self.remaining,
            session_complete=self.is_complete,
        )

    def reset(self) -> None:
        """Abandon the session and return to IDLE."""
        self._queue = []
        self._position = 0
        self.revealed = False
        self.phase = SessionPhase.IDLE

    def summary(self) -> SessionSummary:
        return SessionSummary(reviewed=self.reviewed, ratings=dict(self.ratings))

    def _require_active(self) -> None:
        if self.phase != SessionPhase.IN_SESSION:
            raise SessionStateError(f"No active card (session is {self.phase.value})")

    def _advance(self) -> None:
        if self._position >= len(self._queue) - 1:
            self._finish()
        else:
            self._position += 1

    def _finish(self) -> None:
        self.phase = SessionPhase.COMPLETE
        summary = self.summary()
        logger.info("Review session complete: %d reviewed", summary.reviewed)
        if self.on_complete is not None:
            self.on_complete(summary)
