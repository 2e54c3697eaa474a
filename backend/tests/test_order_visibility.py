"""Tests for the per-consumer order visibility filters."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from festbar.models.order import Order, OrderKind
from festbar.services.order_visibility import bar_view, table_view, waiter_view

T0 = datetime(2026, 7, 4, 18, 0, 0, tzinfo=timezone.utc)

NOW = T0 + timedelta(minutes=10)


def make_order(order_id, table_number, age_minutes, hidden=False, claimed_by=None, kind=OrderKind.ORDER):
    return Order(
        id=order_id,
        table_number=table_number,
        kind=kind.value,
        total=Decimal("5.00"),
        created_at=NOW - timedelta(minutes=age_minutes),
        hidden_from_bar=hidden,
        claimed_by=claimed_by,
        stats_recorded=False,
    )


def ids(orders):
    return [o.id for o in orders]


class TestBarView:
    def test_excludes_expired_and_hidden(self):
        orders = [
            make_order(1, 1, age_minutes=1),
            make_order(2, 2, age_minutes=3, hidden=True),
            make_order(3, 3, age_minutes=7),  # expired with a 6 minute window
        ]
        assert ids(bar_view(orders, NOW, 6)) == [1]

    def test_newest_first(self):
        orders = [make_order(1, 1, 5), make_order(2, 1, 0.5), make_order(3, 1, 2)]
        assert ids(bar_view(orders, NOW, 6)) == [2, 3, 1]

    def test_counter_tables(self):
        orders = [make_order(1, 1, 1), make_order(2, 2, 1), make_order(3, 3, 1)]
        assert sorted(ids(bar_view(orders, NOW, 6, assigned_tables=[1, 3]))) == [1, 3]

    def test_counter_without_tables_sees_everything(self):
        orders = [make_order(1, 1, 1), make_order(2, 2, 1)]
        assert sorted(ids(bar_view(orders, NOW, 6, assigned_tables=[]))) == [1, 2]

    def test_waiter_calls_are_shown(self):
        orders = [make_order(1, 4, 1, kind=OrderKind.WAITER_CALL)]
        assert ids(bar_view(orders, NOW, 6)) == [1]

    def test_input_is_not_mutated(self):
        orders = [make_order(1, 1, 5), make_order(2, 1, 1, hidden=True)]
        before = list(orders)
        bar_view(orders, NOW, 6)
        assert orders == before
        assert orders[1].hidden_from_bar is True


class TestWaiterView:
    def test_hidden_from_bar_still_visible(self):
        orders = [make_order(1, 1, 1, hidden=True), make_order(2, 1, 8)]
        assert ids(waiter_view(orders, NOW, 6)) == [1]

    def test_other_waiters_claims_drop_out(self):
        orders = [
            make_order(1, 1, 1, claimed_by="anna"),
            make_order(2, 1, 1, claimed_by="ben"),
            make_order(3, 1, 1),
        ]
        assert sorted(ids(waiter_view(orders, NOW, 6, waiter_name="anna"))) == [1, 3]

    def test_assigned_tables(self):
        orders = [make_order(1, 1, 1), make_order(2, 5, 1)]
        assert ids(waiter_view(orders, NOW, 6, assigned_tables=[5])) == [2]
        assert ids(waiter_view(orders, NOW, 6, assigned_tables=[])) == []

    def test_never_expire(self):
        orders = [make_order(1, 1, 600)]
        assert ids(waiter_view(orders, NOW, 0)) == [1]


class TestTableView:
    def test_only_own_table(self):
        orders = [make_order(1, 7, 1), make_order(2, 8, 1), make_order(3, 7, 2, hidden=True)]
        assert ids(table_view(orders, NOW, 6, 7)) == [1, 3]
