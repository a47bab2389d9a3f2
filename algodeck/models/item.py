"""Interview question model with embedded SM-2 scheduling state."""

import json
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from algodeck.models.base import Base, TimestampMixin, enum_type
from algodeck.models.enums import Difficulty

DEFAULT_EASE_FACTOR = 2.5


class Item(Base, TimestampMixin):
    """A captured problem and its review schedule."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    difficulty: Mapped[Difficulty] = mapped_column(
        enum_type(Difficulty), nullable=False, default=Difficulty.MEDIUM
    )
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON array, display order
    screenshot_path: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    ocr_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 1 = starred
    notebook_id: Mapped[int | None] = mapped_column(
        ForeignKey("notebooks.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # SM-2 scheduling state
    last_reviewed: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    next_review_date: Mapped[str | None] = mapped_column(
        String(10), nullable=True, index=True
    )  # YYYY-MM-DD, NULL = never scheduled
    interval: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # days
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    repetition: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    notebook: Mapped["Notebook"] = relationship(back_populates="items")  # type: ignore[name-defined] # noqa: F821
    solutions: Mapped[list["Solution"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )
    revision_logs: Mapped[list["RevisionLog"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def tag_list(self) -> list[str]:
        try:
            parsed = json.loads(self.tags or "[]")
        except json.JSONDecodeError:
            return []
        return parsed if isinstance(parsed, list) else []

    @tag_list.setter
    def tag_list(self, value: list[str]) -> None:
        self.tags = json.dumps(dedupe_tags(value))


def dedupe_tags(tags: list[str]) -> list[str]:
    """Strip blanks and drop repeats, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)
