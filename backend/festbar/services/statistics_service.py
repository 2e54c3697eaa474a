"""Statistics accumulation for completed orders.

Every order contributes to the revenue statistics exactly once, no matter
whether the bar hides it, a waiter hides it, or somebody removes it outright,
and no matter how many clients trigger that at the same moment.

The guard is the order's ``stats_recorded`` flag. It is flipped with a
conditional UPDATE (compare-and-set) in the same transaction as the additive
aggregate updates, so two concurrent triggers cannot both pass the guard and a
rolled-back fold leaves the flag unset.
"""

import csv
import enum
import io
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from festbar.models.menu import GLASSES_CATEGORY, MenuItem
from festbar.models.order import Order
from festbar.models.statistics import (
    TOTALS_ROW_ID,
    ItemTotal,
    StatisticsTotals,
    TableItemTotal,
    TableStatistics,
)
from festbar.schemas.statistics import (
    ItemTotalResponse,
    PopularItem,
    StatisticsSnapshot,
    TableStatisticsResponse,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class AccumulatorOutcome(str, enum.Enum):
    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"
    SKIPPED = "skipped"  # waiter calls and empty orders never count
    MISSING = "missing"


@dataclass(frozen=True)
class AccumulatorResult:
    order_id: int
    outcome: AccumulatorOutcome

    @property
    def recorded(self) -> bool:
        return self.outcome is AccumulatorOutcome.RECORDED


class StatisticsService:
    """Folds completed orders into the global and per-table aggregate."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def record_if_needed(self, order_id: int) -> AccumulatorResult:
        """Add an order to the statistics unless it has been counted already."""
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                result = self._record(order_id)
                self.db.commit()
            except IntegrityError:
                # Another client inserted the same aggregate row first
                self.db.rollback()
                if attempt == MAX_ATTEMPTS:
                    raise
                logger.warning(f"Statistics insert conflict for order {order_id}, retrying")
                continue

            if result.recorded:
                logger.info(f"Statistics recorded for order {order_id}")
            else:
                logger.debug(f"Statistics not recorded for order {order_id}: {result.outcome.value}")
            return result

    def _record(self, order_id: int) -> AccumulatorResult:
        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            return AccumulatorResult(order_id, AccumulatorOutcome.MISSING)
        if order.is_waiter_call or not order.lines:
            return AccumulatorResult(order_id, AccumulatorOutcome.SKIPPED)

        guard = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.stats_recorded.is_(False))
            .values(stats_recorded=True)
            .execution_options(synchronize_session=False)
        )
        if guard.rowcount == 0:
            still_there = self.db.scalar(select(Order.id).where(Order.id == order_id))
            outcome = AccumulatorOutcome.ALREADY_RECORDED if still_there else AccumulatorOutcome.MISSING
            return AccumulatorResult(order_id, outcome)

        total = Decimal(order.total or 0)
        self._increment(StatisticsTotals, {"id": TOTALS_ROW_ID}, total_orders=1, total_amount=total)
        self._increment(TableStatistics, {"table_number": order.table_number}, total_orders=1, total_amount=total)

        for line in order.lines:
            amount = line.amount
            self._increment(ItemTotal, {"name": line.name}, quantity=line.quantity, amount=amount)
            self._increment(
                TableItemTotal,
                {"table_number": order.table_number, "name": line.name},
                quantity=line.quantity,
                amount=amount,
            )

        set_committed_value(order, "stats_recorded", True)
        return AccumulatorResult(order_id, AccumulatorOutcome.RECORDED)

    def _increment(self, model, key: Dict, **deltas) -> None:
        """``col = col + delta`` on the row identified by ``key``, inserting it if absent."""
        values = {column: getattr(model, column) + delta for column, delta in deltas.items()}
        result = self.db.execute(
            update(model)
            .filter_by(**key)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.add(model(**key, **deltas))
            self.db.flush()

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def reset(self) -> StatisticsSnapshot:
        """Replace the whole aggregate with zeros."""
        self.db.execute(delete(TableItemTotal))
        self.db.execute(delete(TableStatistics))
        self.db.execute(delete(ItemTotal))
        self.db.execute(delete(StatisticsTotals))
        self.db.add(StatisticsTotals(id=TOTALS_ROW_ID, total_orders=0, total_amount=Decimal("0")))
        self.db.commit()
        logger.info("Statistics reset")
        return self.snapshot()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> StatisticsSnapshot:
        """The whole aggregate as one document."""
        totals = self.db.get(StatisticsTotals, TOTALS_ROW_ID, populate_existing=True)

        item_totals = {
            row.name: ItemTotalResponse(quantity=row.quantity, amount=row.amount)
            for row in self.db.scalars(select(ItemTotal).order_by(ItemTotal.name))
        }

        tables: Dict[int, TableStatisticsResponse] = {}
        for row in self.db.scalars(select(TableStatistics).order_by(TableStatistics.table_number)):
            tables[row.table_number] = TableStatisticsResponse(
                table_number=row.table_number,
                total_orders=row.total_orders,
                total_amount=row.total_amount,
            )
        for row in self.db.scalars(select(TableItemTotal).order_by(TableItemTotal.name)):
            table = tables.get(row.table_number)
            if table is not None:
                table.items[row.name] = ItemTotalResponse(quantity=row.quantity, amount=row.amount)

        return StatisticsSnapshot(
            total_orders=totals.total_orders if totals else 0,
            total_amount=totals.total_amount if totals else Decimal("0"),
            item_totals=item_totals,
            tables=tables,
        )

    def popular_items(self, limit: int = 5) -> List[PopularItem]:
        """Best-selling menu items by quantity, glasses excluded."""
        rows = self.db.execute(
            select(MenuItem.item_id, MenuItem.name, ItemTotal.quantity)
            .join(ItemTotal, ItemTotal.name == MenuItem.name)
            .where(MenuItem.category != GLASSES_CATEGORY)
            .order_by(ItemTotal.quantity.desc(), MenuItem.unit_price.desc())
            .limit(limit)
        ).all()
        return [PopularItem(item_id=item_id, name=name, quantity=quantity) for item_id, name, quantity in rows]

    def export_csv(self) -> str:
        """Semicolon-separated export: item totals, tables, summary."""
        snapshot = self.snapshot()
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=";", lineterminator="\n")

        writer.writerow(["scope", "item", "quantity", "revenue"])
        for name, item in sorted(snapshot.item_totals.items(), key=lambda kv: kv[1].quantity, reverse=True):
            writer.writerow(["total", name, item.quantity, f"{Decimal(item.amount):.2f}"])

        writer.writerow([])
        writer.writerow(["table", "orders", "revenue"])
        for table in sorted(snapshot.tables.values(), key=lambda t: t.total_amount, reverse=True):
            writer.writerow([table.table_number, table.total_orders, f"{Decimal(table.total_amount):.2f}"])

        writer.writerow([])
        writer.writerow(["summary"])
        writer.writerow(["total_orders", snapshot.total_orders])
        writer.writerow(["total_revenue", f"{Decimal(snapshot.total_amount):.2f}"])
        return buffer.getvalue()
