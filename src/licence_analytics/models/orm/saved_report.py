"""Saved custom report ORM model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from licence_analytics.models.orm.base import Base, IdMixin, TimestampMixin, utcnow


class SavedReportORM(Base, IdMixin, TimestampMixin):
    """A persisted report configuration. Results are never stored."""

    __tablename__ = "saved_reports"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    config: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    last_used: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (Index("idx_saved_reports_last_used", "last_used"),)
