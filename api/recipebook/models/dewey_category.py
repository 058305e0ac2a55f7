"""Dewey classification category model."""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from recipebook.models.base import Base
from recipebook.core.time import utc_now


class DeweyCategory(Base):
    """A node in the Dewey-style recipe classification.

    Parent links are stored as codes rather than foreign keys because
    categories are routinely imported before their parents exist.
    """
    __tablename__ = "dewey_categories"

    category_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dewey_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[int] = mapped_column(
        Integer, nullable=False,
        comment="Depth implied by dewey_code: 000 = 3, 000.0 = 4, 000.00 = 5"
    )
    parent_code: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True,
        comment="dewey_code of the parent; NULL for roots (advisory, no FK)"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("ix_dewey_categories_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<DeweyCategory(category_id={self.category_id}, dewey_code={self.dewey_code}, name={self.name}, level={self.level})>"
