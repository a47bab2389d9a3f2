"""JSON backup export and replace-all import.

An import validates the whole payload before anything is deleted, then
clears and reloads every table in a single transaction and rebuilds the
search index, since bulk-loaded rows are not guaranteed to pass through the
index triggers.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.config import utcnow
from algodeck.exceptions import BackupValidationError
from algodeck.models.enums import Difficulty, Rating, SolutionTier
from algodeck.models.item import DEFAULT_EASE_FACTOR, Item, dedupe_tags
from algodeck.models.notebook import DEFAULT_NOTEBOOK_COLOR, Notebook
from algodeck.models.revision_log import RevisionLog
from algodeck.models.solution import Solution
from algodeck.schemas import check_iso_day, parse_tags, required_text, to_naive_utc
from algodeck.store.search import SearchIndex

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1

# (key, accepted aliases) for the arrays every backup must carry.
REQUIRED_ARRAYS = (
    ("items", ("items", "questions")),
    ("solutions", ("solutions",)),
    ("revision_logs", ("revision_logs",)),
)


class _Record(BaseModel):
    @field_validator("created_at", "timestamp", "last_reviewed", mode="after", check_fields=False)
    @classmethod
    def naive_utc(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class NotebookRecord(_Record):
    id: int
    name: str
    color: str = DEFAULT_NOTEBOOK_COLOR
    created_at: datetime | None = None


class ItemRecord(_Record):
    id: int
    title: str
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = Field(default_factory=list)
    screenshot_path: str | None = ""
    ocr_text: str | None = ""
    notes: str | None = ""
    priority: int = Field(default=0, ge=0, le=1)
    notebook_id: int | None = None
    created_at: datetime | None = None
    last_reviewed: datetime | None = None
    next_review_date: str | None = None
    interval: float = 0.0
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=1.3)
    repetition: int = Field(default=0, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_json(cls, value: Any) -> Any:
        return parse_tags(value)

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        return required_text(value, "title")

    @field_validator("next_review_date")
    @classmethod
    def iso_day(cls, value: str | None) -> str | None:
        return check_iso_day(value)


class SolutionRecord(_Record):
    id: int
    item_id: int = Field(validation_alias=AliasChoices("item_id", "question_id"))
    tier: SolutionTier = SolutionTier.BRUTE
    language: str = "python"
    code: str = ""
    explanation: str = ""
    time_complexity: str = ""
    space_complexity: str = ""
    created_at: datetime | None = None


class RevisionLogRecord(_Record):
    id: int
    item_id: int = Field(validation_alias=AliasChoices("item_id", "question_id"))
    rating: Rating
    timestamp: datetime | None = None


class BackupData(BaseModel):
    version: int = BACKUP_VERSION
    exported_at: datetime | None = None
    items: list[ItemRecord] = Field(validation_alias=AliasChoices("items", "questions"))
    solutions: list[SolutionRecord]
    revision_logs: list[RevisionLogRecord]
    notebooks: list[NotebookRecord] = Field(default_factory=list)


@dataclass
class ImportResult:
    items: int
    solutions: int
    revision_logs: int
    notebooks: int

    @property
    def message(self) -> str:
        return (
            f"Imported {self.items} items, {self.solutions} solutions, "
            f"{self.revision_logs} revision logs, {self.notebooks} notebooks"
        )


async def export_backup(db: AsyncSession) -> BackupData:
    """Snapshot all tables into a BackupData payload."""
    items = (await db.execute(select(Item).order_by(Item.id))).scalars().all()
    solutions = (await db.execute(select(Solution).order_by(Solution.id))).scalars().all()
    logs = (await db.execute(select(RevisionLog).order_by(RevisionLog.id))).scalars().all()
    notebooks = (await db.execute(select(Notebook).order_by(Notebook.id))).scalars().all()

    return BackupData(
        version=BACKUP_VERSION,
        exported_at=utcnow(),
        items=[
            ItemRecord(
                id=item.id,
                title=item.title,
                difficulty=item.difficulty,
                tags=item.tag_list,
                screenshot_path=item.screenshot_path,
                ocr_text=item.ocr_text,
                notes=item.notes,
                priority=item.priority,
                notebook_id=item.notebook_id,
                created_at=item.created_at,
                last_reviewed=item.last_reviewed,
                next_review_date=item.next_review_date,
                interval=item.interval,
                ease_factor=item.ease_factor,
                repetition=item.repetition,
            )
            for item in items
        ],
        solutions=[
            SolutionRecord(
                id=s.id,
                item_id=s.item_id,
                tier=s.tier,
                language=s.language,
                code=s.code,
                explanation=s.explanation,
                time_complexity=s.time_complexity,
                space_complexity=s.space_complexity,
                created_at=s.created_at,
            )
            for s in solutions
        ],
        revision_logs=[
            RevisionLogRecord(id=log.id, item_id=log.item_id, rating=log.rating, timestamp=log.timestamp)
            for log in logs
        ],
        notebooks=[
            NotebookRecord(id=n.id, name=n.name, color=n.color, created_at=n.created_at)
            for n in notebooks
        ],
    )


def validate_backup(payload: Any) -> BackupData:
    """Check the shape of an entire backup payload.

    Raises:
        BackupValidationError: Describing the first problem found.
    """
    if not isinstance(payload, dict):
        raise BackupValidationError("Invalid backup: payload must be a JSON object")

    for name, aliases in REQUIRED_ARRAYS:
        if not any(isinstance(payload.get(alias), list) for alias in aliases):
            raise BackupValidationError(f"Invalid backup: missing {name} array")

    try:
        data = BackupData.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise BackupValidationError(f"Invalid backup: {location}: {first['msg']}") from exc

    item_ids = {item.id for item in data.items}
    notebook_ids = {notebook.id for notebook in data.notebooks}
    for item in data.items:
        if item.notebook_id is not None and item.notebook_id not in notebook_ids:
            raise BackupValidationError(
                f"Invalid backup: item {item.id} references unknown notebook {item.notebook_id}"
            )
    for kind, records in (("solution", data.solutions), ("revision log", data.revision_logs)):
        for record in records:
            if record.item_id not in item_ids:
                raise BackupValidationError(
                    f"Invalid backup: {kind} {record.id} references unknown item {record.item_id}"
                )
    return data


async def import_backup(
    db: AsyncSession,
    payload: Any,
    search: SearchIndex,
) -> ImportResult:
    """Replace all data with the contents of ``payload``.

    Raises:
        BackupValidationError: If the payload is malformed; nothing is deleted.
    """
    data = validate_backup(payload)
    now = utcnow()

    try:
        await db.execute(delete(RevisionLog))
        await db.execute(delete(Solution))
        await db.execute(delete(Item))
        await db.execute(delete(Notebook))

        if data.notebooks:
            await db.execute(
                insert(Notebook),
                [
                    {"id": n.id, "name": n.name, "color": n.color, "created_at": n.created_at or now}
                    for n in data.notebooks
                ],
            )
        if data.items:
            await db.execute(insert(Item), [_item_row(item, now) for item in data.items])
        if data.solutions:
            await db.execute(
                insert(Solution),
                [
                    {**s.model_dump(exclude={"created_at"}), "created_at": s.created_at or now}
                    for s in data.solutions
                ],
            )
        if data.revision_logs:
            await db.execute(
                insert(RevisionLog),
                [
                    {"id": r.id, "item_id": r.item_id, "rating": r.rating, "timestamp": r.timestamp or now}
                    for r in data.revision_logs
                ],
            )

        await search.rebuild(db)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.error("Backup import failed, rolled back")
        raise

    result = ImportResult(
        items=len(data.items),
        solutions=len(data.solutions),
        revision_logs=len(data.revision_logs),
        notebooks=len(data.notebooks),
    )
    logger.info(result.message)
    return result


def _item_row(item: ItemRecord, now: datetime) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "difficulty": item.difficulty,
        "tags": json.dumps(dedupe_tags(item.tags)),
        "screenshot_path": item.screenshot_path or "",
        "ocr_text": item.ocr_text or "",
        "notes": item.notes or "",
        "priority": item.priority,
        "notebook_id": item.notebook_id,
        "created_at": item.created_at or now,
        "last_reviewed": item.last_reviewed,
        "next_review_date": item.next_review_date,
        "interval": item.interval,
        "ease_factor": item.ease_factor,
        "repetition": item.repetition,
    }
