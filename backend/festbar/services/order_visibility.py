"""Which orders each consumer of the live board currently sees.

All functions are pure: they never mutate the orders passed in and return
a new list, newest order first, so they can be re-run on every tick.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from festbar.db.base import as_utc
from festbar.models.order import Order
from festbar.services.alert_phase import AlertPhase, classify


def _newest_first(orders: Iterable[Order]) -> List[Order]:
    return sorted(orders, key=lambda o: as_utc(o.created_at), reverse=True)


def _not_expired(orders: Iterable[Order], now: datetime, auto_hide_minutes) -> List[Order]:
    return [o for o in orders if classify(o.created_at, now, auto_hide_minutes) is not AlertPhase.EXPIRED]


def bar_view(
    orders: Iterable[Order],
    now: datetime,
    auto_hide_minutes,
    assigned_tables: Optional[Sequence[int]] = None,
) -> List[Order]:
    """Orders the bar still has to act on.

    ``assigned_tables`` narrows the view to one counter's tables; an empty or
    missing list means the counter serves every table.
    """
    visible = [o for o in _not_expired(orders, now, auto_hide_minutes) if not o.hidden_from_bar]
    if assigned_tables:
        visible = [o for o in visible if o.table_number in assigned_tables]
    return _newest_first(visible)


def waiter_view(
    orders: Iterable[Order],
    now: datetime,
    auto_hide_minutes,
    waiter_name: Optional[str] = None,
    assigned_tables: Optional[Sequence[int]] = None,
) -> List[Order]:
    """Orders visible on a waiter device.

    ``hidden_from_bar`` is bar-local and ignored here. With a waiter name,
    orders claimed by another waiter drop out; with assigned tables, only
    those tables are kept.
    """
    visible = _not_expired(orders, now, auto_hide_minutes)
    if assigned_tables is not None:
        visible = [o for o in visible if o.table_number in assigned_tables]
    if waiter_name:
        visible = [o for o in visible if not o.claimed_by or o.claimed_by == waiter_name]
    return _newest_first(visible)


def table_view(orders: Iterable[Order], now: datetime, auto_hide_minutes, table_number: int) -> List[Order]:
    """Recent orders of one table, as shown on the guest page."""
    visible = [o for o in _not_expired(orders, now, auto_hide_minutes) if o.table_number == table_number]
    return _newest_first(visible)
