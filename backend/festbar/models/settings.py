"""Key-value documents: venue settings, system flags, broadcast."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from festbar.db.base import Base, utcnow


class AppSetting(Base):
    """Key-value settings store."""

    __tablename__ = "app_settings"
    __table_args__ = (UniqueConstraint("category", "key", name="uq_app_settings_category_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # venue, system, broadcast
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
