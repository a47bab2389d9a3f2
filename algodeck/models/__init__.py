"""SQLAlchemy ORM models for the AlgoDeck database."""

from algodeck.models.app_setting import AppSetting
from algodeck.models.base import Base
from algodeck.models.enums import Difficulty, Rating, SolutionTier
from algodeck.models.item import Item
from algodeck.models.notebook import Notebook
from algodeck.models.revision_log import RevisionLog
from algodeck.models.solution import Solution

__all__ = [
    "AppSetting",
    "Base",
    "Difficulty",
    "Item",
    "Notebook",
    "Rating",
    "RevisionLog",
    "Solution",
    "SolutionTier",
]
