"""Statistics aggregate models.

The aggregate is a fold over completed orders: one global totals row, one
row per item name, and the same shape per table number. Rows are only ever
incremented; a reset deletes them all.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from festbar.db.base import Base

TOTALS_ROW_ID = 1


class StatisticsTotals(Base):
    """Singleton row holding the global order count and revenue."""

    __tablename__ = "statistics_totals"

    id: Mapped[int] = mapped_column(primary_key=True, default=TOTALS_ROW_ID)
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)


class ItemTotal(Base):
    """Global quantity and revenue per item name."""

    __tablename__ = "statistics_item_totals"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)


class TableStatistics(Base):
    """Order count and revenue for one table."""

    __tablename__ = "statistics_tables"

    table_number: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)


class TableItemTotal(Base):
    """Quantity and revenue per item name for one table."""

    __tablename__ = "statistics_table_items"

    table_number: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
