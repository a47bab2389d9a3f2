from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from algodeck.models.base import Base


class AppSetting(Base):
    """Key/value store for user preferences (JSON-encoded values)."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
