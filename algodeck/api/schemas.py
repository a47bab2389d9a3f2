"""Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

from algodeck.models.enums import Rating
from algodeck.schemas import ItemRead, NotebookRead, SolutionRead

# --- Session ---


class SessionStartResponse(BaseModel):
    """Response when starting a new review session."""

    session_id: str
    total_cards: int
    notebook_id: int | None = None
    session_complete: bool


class CardResponse(BaseModel):
    """The card currently on screen. Solutions are only sent once revealed."""

    item: ItemRead
    position: int
    total: int
    remaining: int
    revealed: bool
    solutions: list[SolutionRead] | None = None
    rating_labels: dict[Rating, str]


class RateRequest(BaseModel):
    rating: Rating


class RateResponse(BaseModel):
    """Scheduling result after a rating."""

    item_id: int
    rating: Rating
    repetition: int
    interval: float
    ease_factor: float
    next_review_date: str
    remaining: int
    session_complete: bool


class SessionSummaryResponse(BaseModel):
    reviewed: int
    ratings: dict[Rating, int]
    session_complete: bool


# --- Stats ---


class DailyCountResponse(BaseModel):
    day: str
    count: int


class StatsResponse(BaseModel):
    """Dashboard statistics."""

    total_items: int
    due_today: int
    streak_days: int
    total_reviews: int
    today_reviews: int
    unique_items_reviewed: int
    avg_reviews_per_day: float
    rating_breakdown: dict[Rating, int]
    reviews_per_day: list[DailyCountResponse]


# --- Settings ---


class IntervalsResponse(BaseModel):
    again: float
    hard: float
    good: float
    easy: float
    labels: dict[Rating, str]


class IntervalsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    again: float | None = Field(default=None, gt=0)
    hard: float | None = Field(default=None, gt=0)
    good: float | None = Field(default=None, gt=0)
    easy: float | None = Field(default=None, gt=0)


# --- Notebooks / backup ---


class NotebookResponse(NotebookRead):
    item_count: int = 0


class ImportResponse(BaseModel):
    message: str
    items: int
    solutions: int
    revision_logs: int
    notebooks: int
