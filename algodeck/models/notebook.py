from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from algodeck.models.base import Base, TimestampMixin

DEFAULT_NOTEBOOK_COLOR = "#a985ff"


class Notebook(Base, TimestampMixin):
    __tablename__ = "notebooks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_NOTEBOOK_COLOR)

    items: Mapped[list["Item"]] = relationship(back_populates="notebook", passive_deletes=True)  # type: ignore[name-defined] # noqa: F821
