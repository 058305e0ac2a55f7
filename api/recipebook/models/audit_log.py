"""Audit log model for tracking changes."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from recipebook.models.base import Base
from recipebook.core.time import utc_now


class AuditLog(Base):
    """Audit log table for tracking category and recipe changes."""
    __tablename__ = "audit_logs"

    log_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g., "DeweyCategory"
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)  # CREATE, UPDATE, DELETE, IMPORT, CLASSIFY
    changes: Mapped[dict] = mapped_column(JSON, nullable=True)  # JSON of what changed
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
