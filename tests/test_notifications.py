"""
Tests for notification generation.

Covers:
  - Stock alert ids, severities and the in-stock no-op
  - The trailing new-order window and its cap
  - Feed ordering and id stability across passes
  - Relative time labels
"""
from datetime import datetime, timedelta, timezone

import pytest

from storefront_insights.core.inventory import classify_inventory
from storefront_insights.core.models import Order, Product
from storefront_insights.core.notifications import NotificationGenerator, format_relative_time


def _order(order_id, created_at, total=10.0):
    return Order(id=order_id, created_at=created_at, status="pending", total=total)


class TestStockAlerts:

    def test_alert_per_condition(self, now):
        products = [
            Product(id="p0", name="Empty", stock=0),
            Product(id="p5", name="Short", stock=5),
            Product(id="p20", name="Plenty", stock=20),
        ]
        notes = NotificationGenerator().generate(classify_inventory(products, threshold=10), [], now)
        assert [(n.id, n.type, n.severity) for n in notes] == [
            ("out-of-stock-alert-p0", "out-of-stock-alert", "error"),
            ("low-stock-alert-p5", "low-stock-alert", "warning"),
        ]
        assert all(n.timestamp == now for n in notes)
        assert notes[0].product_id == "p0"

    def test_message_falls_back_to_product_id(self, now):
        products = [Product(id="p9", name="", stock=0)]
        (note,) = NotificationGenerator().stock_alerts(classify_inventory(products), now)
        assert '"p9"' in note.message


class TestOrderEvents:

    def test_only_orders_from_the_last_day(self, now):
        orders = [
            _order("recent", now - timedelta(hours=2)),
            _order("edge", now - timedelta(hours=24)),
            _order("old", now - timedelta(days=3)),
            _order("future", now + timedelta(minutes=5)),
            _order("current", now),
            Order(id="undated", status="pending"),
        ]
        notes = NotificationGenerator().order_events(orders, now)
        assert [n.id for n in notes] == ["new-order-current", "new-order-recent"]
        assert all(n.severity == "info" and n.type == "new-order" for n in notes)
        assert notes[1].timestamp == now - timedelta(hours=2)

    def test_capped_to_most_recent(self, now):
        orders = [_order(f"o{i}", now - timedelta(minutes=10 * i)) for i in range(1, 13)]
        notes = NotificationGenerator().order_events(orders, now)
        assert len(notes) == 10
        assert [n.order_id for n in notes] == [f"o{i}" for i in range(1, 11)]

    def test_window_and_cap_are_configurable(self, now):
        orders = [_order(f"o{i}", now - timedelta(hours=i)) for i in range(1, 6)]
        generator = NotificationGenerator(recent_window=timedelta(hours=3), max_recent_orders=1)
        assert [n.order_id for n in generator.order_events(orders, now)] == ["o1"]

    def test_customer_name_in_message(self, now):
        order = Order.model_validate(
            {"id": "o1", "createdAt": now - timedelta(hours=1), "total": 12.5, "customer": {"name": "Ada"}}
        )
        (note,) = NotificationGenerator().order_events([order], now)
        assert "Ada" in note.message
        assert "12.50" in note.message


class TestFeed:

    def test_newest_first_with_stable_ties(self, snapshot, now):
        notes = NotificationGenerator().generate(classify_inventory(snapshot.products), snapshot.orders, now)
        assert [n.id for n in notes] == [
            "out-of-stock-alert-p1",
            "low-stock-alert-p2",
            "new-order-o1",
            "new-order-o2",
        ]
        timestamps = [n.timestamp for n in notes]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_ids_are_stable_across_passes(self, snapshot, now):
        generator = NotificationGenerator()
        classified = classify_inventory(snapshot.products)
        first = generator.generate(classified, snapshot.orders, now)
        later = generator.generate(classified, snapshot.orders, now + timedelta(minutes=30))
        assert [n.id for n in first] == [n.id for n in later]

    def test_nothing_to_report(self, now):
        products = [Product(id="p1", name="Fine", stock=50)]
        assert NotificationGenerator().generate(classify_inventory(products), [], now) == []


class TestRelativeTime:

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(seconds=30), "just now"),
            (timedelta(minutes=5), "5 min ago"),
            (timedelta(minutes=59), "59 min ago"),
            (timedelta(hours=3, minutes=10), "3h ago"),
            (timedelta(days=2, hours=1), "2d ago"),
        ],
    )
    def test_labels(self, now, delta, expected):
        assert format_relative_time(now - delta, now) == expected

    def test_old_timestamps_show_the_date(self, now):
        assert format_relative_time(datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc), now) == "2026-09-01"
