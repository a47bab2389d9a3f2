"""User-tunable rating intervals used by the SM-2 scheduler.

again/hard are minutes (same-day relearning), good/easy are days.
The store loads the configuration once, keeps it in memory, and writes it
back to ``app_settings`` on every change.
"""

import json
import logging
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.models.app_setting import AppSetting
from algodeck.models.enums import Rating

logger = logging.getLogger(__name__)

SETTINGS_KEY = "sm2_intervals"


class IntervalConfig(BaseModel):
    """Immutable snapshot of the four interval knobs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    again: float = Field(default=1, gt=0)  # minutes
    hard: float = Field(default=10, gt=0)  # minutes
    good: float = Field(default=1, gt=0)  # days
    easy: float = Field(default=4, gt=0)  # days

    def value_for(self, rating: Rating) -> float:
        return {
            Rating.AGAIN: self.again,
            Rating.HARD: self.hard,
            Rating.GOOD: self.good,
            Rating.EASY: self.easy,
        }[rating]

    def format_label(self, rating: Rating) -> str:
        """Format the interval shown on a rating button, e.g. ``10m``, ``2h``, ``4d``."""
        value = self.value_for(rating)
        if rating in (Rating.AGAIN, Rating.HARD):
            if value < 60:
                return f"{_number(value)}m"
            return f"{math.floor(value / 60 + 0.5)}h"
        return f"{_number(value)}d"


DEFAULT_INTERVALS = IntervalConfig()


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


class IntervalConfigStore:
    """Process-wide owner of the current IntervalConfig."""

    def __init__(self, initial: IntervalConfig | None = None) -> None:
        self._current = initial or DEFAULT_INTERVALS

    @property
    def current(self) -> IntervalConfig:
        return self._current

    @staticmethod
    def defaults() -> IntervalConfig:
        return DEFAULT_INTERVALS

    async def load(self, db: AsyncSession) -> IntervalConfig:
        """Load the persisted configuration, writing defaults on first run."""
        row = await db.get(AppSetting, SETTINGS_KEY)
        if row is None:
            db.add(AppSetting(key=SETTINGS_KEY, value=DEFAULT_INTERVALS.model_dump_json()))
            await db.commit()
            self._current = DEFAULT_INTERVALS
            logger.info("Initialized interval configuration with defaults")
            return self._current

        try:
            stored = json.loads(row.value)
            self._current = IntervalConfig.model_validate(
                {**DEFAULT_INTERVALS.model_dump(), **stored}
            )
        except (json.JSONDecodeError, TypeError, ValidationError):
            logger.warning("Stored interval configuration is invalid, using defaults")
            self._current = DEFAULT_INTERVALS
        return self._current

    async def update(self, db: AsyncSession, changes: dict[str, Any]) -> IntervalConfig:
        """Merge ``changes`` into the current configuration and persist it.

        Raises:
            pydantic.ValidationError: If a key is unknown or a value is not positive.
        """
        updated = IntervalConfig.model_validate({**self._current.model_dump(), **changes})
        row = await db.get(AppSetting, SETTINGS_KEY)
        if row is None:
            db.add(AppSetting(key=SETTINGS_KEY, value=updated.model_dump_json()))
        else:
            row.value = updated.model_dump_json()
        await db.commit()
        self._current = updated
        logger.info("Updated interval configuration: %s", updated.model_dump())
        return updated
