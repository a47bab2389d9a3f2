from datetime import datetime

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from algodeck.config import utcnow
from algodeck.models.base import Base, enum_type
from algodeck.models.enums import Rating


class RevisionLog(Base):
    """One rating event. Rows are only ever inserted or bulk-deleted."""

    __tablename__ = "revision_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[Rating] = mapped_column(enum_type(Rating), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    item: Mapped["Item"] = relationship(back_populates="revision_logs")  # type: ignore[name-defined] # noqa: F821
