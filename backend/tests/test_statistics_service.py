"""Tests for the statistics accumulator."""

from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from festbar.models.order import Order, OrderKind, OrderLine
from festbar.models.statistics import ItemTotal, StatisticsTotals
from festbar.services.statistics_service import AccumulatorOutcome, StatisticsService


def make_order(db, table_number, lines, kind=OrderKind.ORDER, total=None):
    """Persist an order with ``lines`` given as (name, unit_price, quantity)."""
    if total is None:
        total = sum((Decimal(price) * qty for _, price, qty in lines), Decimal("0"))
    order = Order(table_number=table_number, kind=kind.value, total=total)
    order.lines = [
        OrderLine(position=i, name=name, unit_price=Decimal(price), quantity=qty)
        for i, (name, price, qty) in enumerate(lines)
    ]
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


@pytest.fixture
def service(db_session):
    return StatisticsService(db_session)


class TestRecordIfNeeded:
    def test_first_record_updates_global_and_table(self, db_session, service):
        order = make_order(db_session, 7, [("Pils", "3.00", 2)])

        result = service.record_if_needed(order.id)

        assert result.outcome is AccumulatorOutcome.RECORDED
        snapshot = service.snapshot()
        assert snapshot.total_orders == 1
        assert snapshot.total_amount == Decimal("6.00")
        assert snapshot.item_totals["Pils"].quantity == 2
        assert snapshot.item_totals["Pils"].amount == Decimal("6.00")
        assert snapshot.tables[7].total_orders == 1
        assert snapshot.tables[7].total_amount == Decimal("6.00")
        assert snapshot.tables[7].items["Pils"].quantity == 2

        db_session.refresh(order)
        assert order.stats_recorded is True

    def test_second_record_is_a_no_op(self, db_session, service):
        order = make_order(db_session, 7, [("Pils", "3.00", 2)])
        service.record_if_needed(order.id)
        before = service.snapshot()

        result = service.record_if_needed(order.id)

        assert result.outcome is AccumulatorOutcome.ALREADY_RECORDED
        assert not result.recorded
        assert service.snapshot() == before

    def test_stale_flag_in_another_session_cannot_double_count(self, db_engine, db_session, service):
        order = make_order(db_session, 3, [("Cola", "2.50", 4)])

        other = sessionmaker(bind=db_engine, autoflush=False)()
        try:
            stale = other.get(Order, order.id)
            assert stale.stats_recorded is False

            assert service.record_if_needed(order.id).recorded
            assert StatisticsService(other).record_if_needed(order.id).outcome is AccumulatorOutcome.ALREADY_RECORDED
        finally:
            other.close()

        assert service.snapshot().total_amount == Decimal("10.00")

    def test_waiter_call_is_skipped(self, db_session, service):
        call = make_order(db_session, 2, [], kind=OrderKind.WAITER_CALL)

        result = service.record_if_needed(call.id)

        assert result.outcome is AccumulatorOutcome.SKIPPED
        assert service.snapshot().total_orders == 0
        db_session.refresh(call)
        assert call.stats_recorded is False

    def test_order_without_lines_is_skipped(self, db_session, service):
        order = make_order(db_session, 2, [], total=Decimal("0"))
        assert service.record_if_needed(order.id).outcome is AccumulatorOutcome.SKIPPED

    def test_missing_order(self, service):
        assert service.record_if_needed(9999).outcome is AccumulatorOutcome.MISSING

    def test_totals_are_a_fold_over_recorded_orders(self, db_session, service):
        orders = [
            make_order(db_session, 1, [("Pils", "3.00", 2), ("Cola", "2.50", 1)]),
            make_order(db_session, 1, [("Pils", "3.00", 1)]),
            make_order(db_session, 2, [("Wasser", "2.00", 3)]),
        ]
        for order in orders:
            service.record_if_needed(order.id)

        snapshot = service.snapshot()
        assert snapshot.total_orders == 3
        assert snapshot.total_amount == Decimal("17.50")
        assert snapshot.item_totals["Pils"].quantity == 3
        assert snapshot.item_totals["Cola"].quantity == 1
        assert snapshot.item_totals["Wasser"].quantity == 3
        assert snapshot.tables[1].total_orders == 2
        assert snapshot.tables[1].total_amount == Decimal("11.50")
        assert set(snapshot.tables[2].items) == {"Wasser"}

    def test_stored_total_is_used_as_is(self, db_session, service):
        order = make_order(db_session, 4, [("Pils", "3.00", 2)], total=Decimal("5.00"))
        service.record_if_needed(order.id)
        snapshot = service.snapshot()
        assert snapshot.total_amount == Decimal("5.00")
        assert snapshot.item_totals["Pils"].amount == Decimal("6.00")


class TestReset:
    def test_reset_zeroes_aggregate_and_keeps_flags(self, db_session, service):
        order = make_order(db_session, 7, [("Pils", "3.00", 2)])
        service.record_if_needed(order.id)

        snapshot = service.reset()

        assert snapshot.total_orders == 0
        assert snapshot.total_amount == Decimal("0")
        assert snapshot.item_totals == {}
        assert snapshot.tables == {}
        assert db_session.query(ItemTotal).count() == 0
        assert db_session.get(StatisticsTotals, 1).total_orders == 0
        db_session.refresh(order)
        assert order.stats_recorded is True

    def test_recording_after_reset(self, db_session, service):
        service.reset()
        order = make_order(db_session, 1, [("Cola", "2.50", 2)])
        service.record_if_needed(order.id)
        assert service.snapshot().total_orders == 1


class TestReads:
    def test_popular_items_skip_glasses(self, db_session, service, menu):
        for lines in (
            [("Pils", "3.00", 5), ("Bierglas (leer)", "0.00", 9)],
            [("Cola", "2.50", 2)],
            [("Flasche Sekt", "22.00", 1)],
        ):
            service.record_if_needed(make_order(db_session, 1, lines).id)

        popular = service.popular_items(limit=2)

        assert [item.item_id for item in popular] == ["pils", "cola"]
        assert popular[0].quantity == 5

    def test_export_csv(self, db_session, service):
        service.record_if_needed(make_order(db_session, 7, [("Pils", "3.00", 2)]).id)
        service.record_if_needed(make_order(db_session, 2, [("Cola", "2.50", 1)]).id)

        lines = service.export_csv().splitlines()

        assert lines[0] == "scope;item;quantity;revenue"
        assert lines[1] == "total;Pils;2;6.00"
        assert lines[2] == "total;Cola;1;2.50"
        assert "table;orders;revenue" in lines
        assert "7;1;6.00" in lines
        assert "total_orders;2" in lines
        assert "total_revenue;8.50" in lines
