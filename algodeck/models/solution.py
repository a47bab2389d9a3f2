from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from algodeck.models.base import Base, TimestampMixin, enum_type
from algodeck.models.enums import SolutionTier


class Solution(Base, TimestampMixin):
    __tablename__ = "solutions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier: Mapped[SolutionTier] = mapped_column(
        enum_type(SolutionTier), nullable=False, default=SolutionTier.BRUTE
    )
    language: Mapped[str] = mapped_column(String(50), nullable=False, default="python")
    code: Mapped[str] = mapped_column(Text, nullable=False, default="")
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    time_complexity: Mapped[str] = mapped_column(String(100), nullable=False, default="")  # free text, e.g. O(n log n)
    space_complexity: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    item: Mapped["Item"] = relationship(back_populates="solutions")  # type: ignore[name-defined] # noqa: F821
