"""Order models - guest orders and waiter calls on the live board."""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from festbar.db.base import Base, utcnow


class OrderKind(str, enum.Enum):
    ORDER = "order"
    WAITER_CALL = "waiter_call"


class Order(Base):
    """One guest submission or waiter call.

    Line items are immutable after creation. The only fields that ever change
    are the one-way flags: ``claimed_by`` (unset -> set), ``hidden_from_bar``
    and ``stats_recorded`` (false -> true).
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), default=OrderKind.ORDER.value, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Set when a waiter placed the order on behalf of the table
    ordered_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    claimed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    hidden_from_bar: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0", nullable=False)
    stats_recorded: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0", nullable=False)

    lines: Mapped[List["OrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
        lazy="selectin",
    )

    @property
    def is_waiter_call(self) -> bool:
        return self.kind == OrderKind.WAITER_CALL.value


class OrderLine(Base):
    """Line item on an order."""

    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship(back_populates="lines")

    @property
    def amount(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity
