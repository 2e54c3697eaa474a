"""Order lifecycle: submission, waiter calls, claiming and completion.

    New -> HiddenFromBar -> Removed
    New -> Removed

Both completion gestures (hide and remove) go through
``StatisticsService.record_if_needed`` before touching the order, so each
order reaches the statistics exactly once whichever client completes it.
Acting on an order that is already gone is a no-op, not an error.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from festbar.core.config import settings
from festbar.core.exceptions import (
    OrderingClosedError,
    OrderNotClaimedError,
    WaiterCallCooldownError,
)
from festbar.db.base import as_utc, utcnow
from festbar.models.order import Order, OrderKind, OrderLine
from festbar.schemas.order import (
    BoardOrder,
    BoardSnapshot,
    LifecycleResponse,
    OrderCreate,
    OrderResponse,
)
from festbar.services.alert_phase import NEVER_EXPIRE, classify
from festbar.services.order_visibility import bar_view, table_view, waiter_view
from festbar.services.settings_service import SettingsService
from festbar.services.statistics_service import AccumulatorOutcome, StatisticsService

logger = logging.getLogger(__name__)

STATUS_CLAIMED = "claimed"
STATUS_CLAIMED_BY_OTHER = "claimed_by_other"
STATUS_HIDDEN = "hidden"
STATUS_REMOVED = "removed"
STATUS_GONE = "gone"

VIEW_BAR = "bar"
VIEW_WAITER = "waiter"
VIEW_TABLE = "table"


class OrderLifecycleService:
    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self._now = now
        self.settings = SettingsService(db)
        self.statistics = StatisticsService(db)

    def now(self) -> datetime:
        return self._now or utcnow()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _ensure_ordering_open(self, is_order: bool) -> None:
        flags = self.settings.get_system_flags()
        if flags.shutdown:
            raise OrderingClosedError("shutdown")
        if is_order and flags.order_form_disabled:
            raise OrderingClosedError("order_form_disabled")

    def submit_order(self, request: OrderCreate) -> Order:
        """Store a guest order. The total is fixed here and never recomputed."""
        self._ensure_ordering_open(is_order=True)

        created_at = request.created_at or self.now()
        order = Order(
            table_number=request.table_number,
            kind=OrderKind.ORDER.value,
            total=request.total,
            created_at=as_utc(created_at).astimezone(timezone.utc),
            ordered_by=request.ordered_by,
        )
        order.lines = [
            OrderLine(position=i, name=line.name, unit_price=line.unit_price, quantity=line.quantity)
            for i, line in enumerate(request.lines)
        ]
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} submitted for table {order.table_number}, total {order.total}")
        return order

    def _check_waiter_call_cooldown(self, table_number: int) -> None:
        """Allow one waiter call per table per cooldown window."""
        cooldown = settings.waiter_call_cooldown_seconds
        if cooldown <= 0:
            return

        last_call = self.db.scalars(
            select(Order)
            .where(Order.table_number == table_number, Order.kind == OrderKind.WAITER_CALL.value)
            .order_by(Order.created_at.desc())
            .limit(1)
        ).first()
        if last_call is None:
            return

        elapsed = (self.now() - as_utc(last_call.created_at)).total_seconds()
        if elapsed < cooldown:
            raise WaiterCallCooldownError(table_number, int(cooldown - elapsed) + 1)

    def call_waiter(self, table_number: int) -> Order:
        self._ensure_ordering_open(is_order=False)
        self._check_waiter_call_cooldown(table_number)

        call = Order(
            table_number=table_number,
            kind=OrderKind.WAITER_CALL.value,
            total=Decimal("0"),
            created_at=self.now(),
        )
        self.db.add(call)
        self.db.commit()
        self.db.refresh(call)

        logger.info(f"Waiter call {call.id} from table {table_number}")
        return call

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def claim(self, order_id: int, waiter_name: str) -> LifecycleResponse:
        """Set ``claimed_by`` unless another waiter got there first."""
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.claimed_by.is_(None))
            .values(claimed_by=waiter_name, claimed_at=self.now())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            logger.debug(f"Claim on order {order_id} ignored: order is gone")
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE)

        if order.claimed_by == waiter_name:
            if result.rowcount:
                logger.info(f"Order {order_id} claimed by {waiter_name}")
            return LifecycleResponse(
                order_id=order_id, status=STATUS_CLAIMED, order=OrderResponse.model_validate(order)
            )

        logger.debug(f"Order {order_id} already claimed by {order.claimed_by}")
        return LifecycleResponse(
            order_id=order_id, status=STATUS_CLAIMED_BY_OTHER, order=OrderResponse.model_validate(order)
        )

    def hide_from_bar(self, order_id: int, waiter_name: Optional[str] = None) -> LifecycleResponse:
        """Take an order off the bar board; it stays visible to waiters.

        A waiter may only complete orders they claimed themselves.
        """
        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            logger.debug(f"Hide on order {order_id} ignored: order is gone")
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE)
        if waiter_name and order.claimed_by != waiter_name:
            raise OrderNotClaimedError(order_id, waiter_name, order.claimed_by)

        stats = self.statistics.record_if_needed(order_id)
        if stats.outcome is AccumulatorOutcome.MISSING:
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE, stats_outcome=stats.outcome.value)

        self.db.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(hidden_from_bar=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE, stats_outcome=stats.outcome.value)

        logger.info(f"Order {order_id} hidden from bar")
        return LifecycleResponse(
            order_id=order_id,
            status=STATUS_HIDDEN,
            stats_outcome=stats.outcome.value,
            order=OrderResponse.model_validate(order),
        )

    def remove_completely(self, order_id: int) -> LifecycleResponse:
        """Delete an order for every client, counting it first if it never was."""
        stats = self.statistics.record_if_needed(order_id)
        if stats.outcome is AccumulatorOutcome.MISSING:
            logger.debug(f"Remove on order {order_id} ignored: order is gone")
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE, stats_outcome=stats.outcome.value)

        order = self.db.get(Order, order_id, populate_existing=True)
        snapshot = OrderResponse.model_validate(order) if order else None

        self.db.execute(delete(OrderLine).where(OrderLine.order_id == order_id))
        result = self.db.execute(delete(Order).where(Order.id == order_id))
        self.db.commit()
        self.db.expire_all()

        if result.rowcount == 0:
            return LifecycleResponse(order_id=order_id, status=STATUS_GONE, stats_outcome=stats.outcome.value)

        logger.info(f"Order {order_id} removed")
        return LifecycleResponse(
            order_id=order_id,
            status=STATUS_REMOVED,
            stats_outcome=stats.outcome.value,
            order=snapshot,
        )

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    def recent_orders(self, auto_hide_minutes: float) -> List[Order]:
        """Orders young enough to be on any board."""
        query = select(Order)
        if auto_hide_minutes != NEVER_EXPIRE:
            cutoff = self.now() - timedelta(minutes=auto_hide_minutes)
            query = query.where(Order.created_at >= cutoff)
        return list(self.db.scalars(query.order_by(Order.created_at.desc())))

    def board(
        self,
        view: str,
        counter_id: Optional[str] = None,
        waiter_name: Optional[str] = None,
        assigned_tables: Optional[Sequence[int]] = None,
        table_number: Optional[int] = None,
    ) -> BoardSnapshot:
        """Orders visible to one consumer, each tagged with its alert phase."""
        now = self.now()
        auto_hide = self.settings.auto_hide_minutes()
        orders = self.recent_orders(auto_hide)

        if view == VIEW_BAR:
            tables = None
            if counter_id:
                counter = self.settings.get_counter(counter_id)
                if counter is None:
                    logger.debug(f"Unknown counter {counter_id}, showing all tables")
                else:
                    tables = counter.assigned_tables
            visible = bar_view(orders, now, auto_hide, assigned_tables=tables)
        elif view == VIEW_WAITER:
            visible = waiter_view(orders, now, auto_hide, waiter_name=waiter_name, assigned_tables=assigned_tables)
        elif view == VIEW_TABLE:
            if table_number is None:
                raise ValueError("table view needs a table number")
            visible = table_view(orders, now, auto_hide, table_number)
        else:
            raise ValueError(f"Unknown board view: {view}")

        return BoardSnapshot(
            view=view,
            generated_at=now,
            auto_hide_minutes=auto_hide,
            orders=[
                BoardOrder(
                    **OrderResponse.model_validate(order).model_dump(),
                    phase=classify(order.created_at, now, auto_hide),
                )
                for order in visible
            ],
        )
