"""Waiter models - table assignments and push tokens."""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from festbar.db.base import Base, utcnow


class WaiterAssignment(Base):
    """Tables a waiter is currently responsible for."""

    __tablename__ = "waiter_assignments"

    waiter_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    tables: Mapped[List[int]] = mapped_column(JSON, default=list, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class FcmToken(Base):
    """Firebase Cloud Messaging device token of a waiter."""

    __tablename__ = "fcm_tokens"

    waiter_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    token: Mapped[str] = mapped_column(String(500), nullable=False)
    platform: Mapped[str] = mapped_column(String(20), default="web", nullable=False)  # android, ios, web
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
