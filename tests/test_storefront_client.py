"""
Tests for loading snapshots from storefront exports.

Covers:
  - camelCase and snake_case exports in the same snapshot
  - Wrapped and bare JSON arrays
  - Per-record rejection and data quality reports
  - Missing or malformed files raising fetch errors
"""
import json

import pytest

from storefront_insights.clients import StorefrontExportClient, build_snapshot
from storefront_insights.clients.storefront_client import load_orders, load_products
from storefront_insights.core.exceptions import SnapshotFormatError, UpstreamFetchError


def _write(directory, name, payload):
    (directory / name).write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
def export_dir(tmp_path, raw_orders, raw_products, raw_categories):
    _write(tmp_path, "orders.json", {"orders": raw_orders, "export_date": "2026-10-19"})
    _write(tmp_path, "products.json", raw_products)
    _write(tmp_path, "categories.json", raw_categories)
    return tmp_path


class TestStorefrontExportClient:

    def test_loads_snapshot(self, export_dir, now):
        snapshot = StorefrontExportClient(export_dir, clock=lambda: now).fetch()
        assert [o.id for o in snapshot.orders] == ["o1", "o2", "o3", "o4", "o5"]
        assert len(snapshot.products) == 4
        assert snapshot.category_names() == {"c1": "Apparel", "c2": "Bags"}
        assert snapshot.fetched_at == now
        assert snapshot.version == 1

    def test_versions_increase_per_fetch(self, export_dir):
        client = StorefrontExportClient(export_dir)
        assert client.fetch().version == 1
        assert client.fetch().version == 2

    def test_categories_are_optional(self, export_dir):
        (export_dir / "categories.json").unlink()
        assert StorefrontExportClient(export_dir).fetch().categories == []

    @pytest.mark.parametrize("missing", ["orders.json", "products.json"])
    def test_missing_required_file(self, export_dir, missing):
        (export_dir / missing).unlink()
        with pytest.raises(UpstreamFetchError, match="not found"):
            StorefrontExportClient(export_dir).fetch()

    def test_invalid_json(self, export_dir):
        (export_dir / "products.json").write_text("[{", encoding="utf-8")
        with pytest.raises(SnapshotFormatError):
            StorefrontExportClient(export_dir).fetch()

    def test_invalid_utf8_is_a_format_error(self, export_dir):
        (export_dir / "orders.json").write_bytes(b'[{"id": "o1", "total": "\xff\xfe"}]')
        with pytest.raises(SnapshotFormatError, match="UTF-8"):
            StorefrontExportClient(export_dir).fetch()

    def test_wrong_shape_is_a_fetch_error(self, export_dir):
        _write(export_dir, "orders.json", {"data": []})
        with pytest.raises(UpstreamFetchError, match="list of orders"):
            StorefrontExportClient(export_dir).fetch()


class TestRecordHandling:

    def test_mixed_key_styles(self, now):
        snapshot = build_snapshot(
            [
                {"id": "a", "createdAt": "2026-10-19T09:00:00Z", "total": 10, "paymentStatus": "paid"},
                {"id": "b", "created_at": "2026-10-19 09:00:00", "total": "12", "payment_status": "paid"},
            ],
            [
                {"id": "p1", "name": "Mug", "stock": 3, "categoryId": "c1"},
                {"id": "p2", "name": "Cup", "stock": "7", "category_id": "c1"},
            ],
            [],
            fetched_at=now,
        )
        assert [o.created_at for o in snapshot.orders][0] == snapshot.orders[1].created_at
        assert [o.payment_status for o in snapshot.orders] == ["paid", "paid"]
        assert [p.category_id for p in snapshot.products] == ["c1", "c1"]

    def test_broken_orders_are_reported(self):
        orders, report = load_orders(
            [
                {"id": "a", "createdAt": "2026-10-19T09:00:00Z", "total": 10, "status": "completed"},
                {"id": "b", "createdAt": "last tuesday", "total": "ten", "status": "teleported"},
                {"total": 5},
                "not an order",
            ]
        )
        assert [o.id for o in orders] == ["a", "b"]
        assert report.total_rows == 4
        assert report.issue("invalid_record").count == 2
        assert report.issue("unparsed_date").sample_values == ["last tuesday"]
        assert report.issue("invalid_number").sample_values == ["ten"]
        assert report.issue("unknown_status").sample_values == ["teleported"]
        assert report.summary()["warnings"] == 4

    def test_clean_orders_have_no_issues(self, raw_orders):
        _, report = load_orders(raw_orders)
        assert not report.has_issues

    def test_products_without_integer_stock_are_skipped(self):
        products, report = load_products(
            [
                {"id": "p1", "name": "Mug", "stock": 3},
                {"id": "p2", "name": "Cup", "stock": 2.5},
                {"id": "p3", "name": "Bowl", "stock": -1},
            ]
        )
        assert [p.id for p in products] == ["p1", "p3"]
        assert report.issue("invalid_record").sample_values == ["p2"]
        negative = report.issue("negative_stock")
        assert negative.severity == "info"
        assert negative.sample_values == ["p3"]

    def test_unknown_products_in_orders_are_noted(self, now):
        snapshot = build_snapshot(
            [{"id": "o1", "items": [{"productId": "ghost", "quantity": 1, "price": 3}]}],
            [{"id": "p1", "name": "Mug", "stock": 3}],
            [],
            fetched_at=now,
        )
        issue = snapshot.quality_reports["orders"].issue("missing_reference")
        assert issue.sample_values == ["ghost"]
        assert issue.severity == "info"

    def test_empty_export(self, now):
        snapshot = build_snapshot([], [], [], fetched_at=now)
        assert snapshot.orders == []
        assert not any(r.has_issues for r in snapshot.quality_reports.values())
