"""Pydantic models for validated input and read views of stored records."""

import json
import re
from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from algodeck.models.enums import Difficulty, Rating, SolutionTier

DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def parse_tags(value: Any) -> Any:
    """Accept either a list or its JSON-serialized form."""
    if isinstance(value, str):
        try:
            parsed = json.loads(value or "[]")
        except json.JSONDecodeError:
            return []
        return parsed if isinstance(parsed, list) else []
    return value


def required_text(value: str, name: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{name} is required")
    return value


def check_iso_day(value: str | None) -> str | None:
    if value is not None and not DAY_PATTERN.match(value):
        raise ValueError("next_review_date must be YYYY-MM-DD")
    return value


class Patch(BaseModel):
    """Base for partial updates.

    A field is present when it was explicitly supplied (``model_fields_set``),
    even if its value is None; absent fields are never written.
    """

    model_config = ConfigDict(extra="forbid")

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required(self) -> "Patch":
        nulls = sorted(
            name for name in self.model_fields_set & self.NON_NULLABLE if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


# --- Items ---


class ItemCreate(BaseModel):
    title: str
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = Field(default_factory=list)
    screenshot_path: str = ""
    ocr_text: str = ""
    notes: str = ""
    priority: int = Field(default=0, ge=0, le=1)
    notebook_id: int | None = None

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        return required_text(value, "title")


class ItemPatch(Patch):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {
            "title",
            "difficulty",
            "tags",
            "screenshot_path",
            "ocr_text",
            "notes",
            "priority",
            "interval",
            "ease_factor",
            "repetition",
        }
    )

    title: str | None = None
    difficulty: Difficulty | None = None
    tags: list[str] | None = None
    screenshot_path: str | None = None
    ocr_text: str | None = None
    notes: str | None = None
    priority: int | None = Field(default=None, ge=0, le=1)
    notebook_id: int | None = None
    last_reviewed: datetime | None = None
    next_review_date: str | None = None
    interval: float | None = Field(default=None, ge=0)
    ease_factor: float | None = Field(default=None, ge=1.3)
    repetition: int | None = Field(default=None, ge=0)

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str | None) -> str | None:
        return value if value is None else required_text(value, "title")

    @field_validator("next_review_date")
    @classmethod
    def iso_day(cls, value: str | None) -> str | None:
        return check_iso_day(value)


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    difficulty: Difficulty
    tags: list[str]
    screenshot_path: str
    ocr_text: str
    notes: str
    priority: int
    notebook_id: int | None
    created_at: datetime
    last_reviewed: datetime | None
    next_review_date: str | None
    interval: float
    ease_factor: float
    repetition: int

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_json(cls, value: Any) -> Any:
        return parse_tags(value)


# --- Solutions ---


class SolutionCreate(BaseModel):
    item_id: int
    tier: SolutionTier = SolutionTier.BRUTE
    language: str = "python"
    code: str = ""
    explanation: str = ""
    time_complexity: str = ""
    space_complexity: str = ""


class SolutionPatch(Patch):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {"tier", "language", "code", "explanation", "time_complexity", "space_complexity"}
    )

    tier: SolutionTier | None = None
    language: str | None = None
    code: str | None = None
    explanation: str | None = None
    time_complexity: str | None = None
    space_complexity: str | None = None


class SolutionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    tier: SolutionTier
    language: str
    code: str
    explanation: str
    time_complexity: str
    space_complexity: str
    created_at: datetime


# --- Notebooks ---


class NotebookCreate(BaseModel):
    name: str
    color: str = "#a985ff"

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        return required_text(value, "name")


class NotebookPatch(Patch):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({"name", "color"})

    name: str | None = None
    color: str | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str | None) -> str | None:
        return value if value is None else required_text(value, "name")


class NotebookRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str
    created_at: datetime


# --- Revision log ---


class RevisionLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    rating: Rating
    timestamp: datetime
