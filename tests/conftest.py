"""
Shared fixtures for the reporting engine tests.

Everything runs against in-memory data and a fixed clock; nothing here
touches the network or the real data directory.
"""
from datetime import datetime, timezone

import pytest

from storefront_insights.clients import build_snapshot
from storefront_insights.config import Settings
from storefront_insights.core import InMemoryBackend, ReadStateStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return Settings(_env_file=None, low_stock_threshold=10, top_n=5)


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return ReadStateStore(backend)


@pytest.fixture
def make_order():
    """Factory for raw order records in the storefront's camelCase shape."""

    def _make(order_id, created_at, total, status="completed", payment_status="paid", items=None, **extra):
        record = {
            "id": order_id,
            "createdAt": created_at,
            "total": total,
            "status": status,
            "paymentStatus": payment_status,
            "items": items or [],
        }
        record.update(extra)
        return record

    return _make


@pytest.fixture
def raw_products():
    return [
        {"id": "p1", "name": "Linen Shirt", "stock": 0, "categoryId": "c1"},
        {"id": "p2", "name": "Canvas Tote", "stock": 5, "categoryId": "c2"},
        {"id": "p3", "name": "Wool Scarf", "stock": 20, "categoryId": "c1"},
        {"id": "p4", "name": "Rain Jacket", "stock": 40, "categoryId": "c1"},
    ]


@pytest.fixture
def raw_categories():
    return [
        {"id": "c1", "name": "Apparel"},
        {"id": "c2", "name": "Bags"},
    ]


@pytest.fixture
def raw_orders(make_order):
    return [
        make_order(
            "o1", "2026-10-19T09:00:00Z", 100,
            items=[{"productId": "p3", "productName": "Wool Scarf", "quantity": 2, "price": 50}],
            customer={"name": "Ada"},
        ),
        make_order("o2", "2026-10-19T08:00:00Z", 50, status="cancelled", payment_status="refunded"),
        make_order(
            "o3", "2026-10-15T10:00:00Z", 80, status="processing", payment_status="pending",
            items=[{"productId": "p2", "productName": "Canvas Tote", "quantity": 4, "price": 20}],
        ),
        make_order("o4", "2026-10-14T10:00:00Z", 30, status="pending", payment_status="pending"),
        make_order("o5", "2026-06-02T10:00:00Z", 200, status="shipped", payment_status="paid"),
    ]


@pytest.fixture
def snapshot(raw_orders, raw_products, raw_categories, now):
    return build_snapshot(raw_orders, raw_products, raw_categories, fetched_at=now, version=1)
