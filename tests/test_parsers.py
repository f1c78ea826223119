"""
Tests for raw value parsing and record validation.

Covers:
  - Timestamp formats and UTC normalization
  - Amount / stock coercion
  - camelCase and snake_case record shapes
"""
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest
from pydantic import ValidationError

from storefront_insights.core.models import Order, Product
from storefront_insights.core.parsers import (
    TimestampParser,
    ensure_utc,
    normalize_id,
    parse_amount,
    parse_stock,
)


class TestTimestampParser:

    def test_iso_with_z_suffix(self):
        parsed = TimestampParser().parse("2026-10-19T09:30:00Z")
        assert parsed == datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        parsed = TimestampParser().parse("2026-10-19T09:30:00+02:00")
        assert parsed == datetime(2026, 10, 19, 7, 30, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_naive_values_are_assumed_utc(self):
        parsed = TimestampParser().parse("2026-10-19 09:30:00")
        assert parsed == datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

    def test_fallback_formats(self):
        parser = TimestampParser()
        assert parser.parse("2026/10/19") == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert parser.parse("19/10/2026 14:05") == datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc)

    def test_custom_formats_are_tried(self):
        parser = TimestampParser(custom_formats=["%d.%m.%Y"])
        assert parser.parse("19.10.2026") == datetime(2026, 10, 19, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345, float("nan")])
    def test_unusable_values_return_none(self, value):
        assert TimestampParser().parse(value) is None

    def test_datetime_and_timestamp_inputs(self):
        parser = TimestampParser()
        naive = datetime(2026, 10, 19, 9, 0)
        assert parser.parse(naive) == naive.replace(tzinfo=timezone.utc)
        assert parser.parse(pd.Timestamp("2026-10-19T09:00:00Z")) == naive.replace(tzinfo=timezone.utc)
        assert parser.parse(pd.NaT) is None

    def test_cache_is_bounded(self):
        parser = TimestampParser(cache_size=2)
        days = [f"2026-10-{day:02d}T09:00:00Z" for day in range(10, 15)]
        parsed = [parser.parse(text) for text in days]
        assert parser.cache_info().currsize == 2
        assert parsed[0] == datetime(2026, 10, 10, 9, 0, tzinfo=timezone.utc)
        assert parser.parse(days[0]) == parsed[0]


def test_ensure_utc_converts_aware_values():
    eastern = timezone(timedelta(hours=-5))
    assert ensure_utc(datetime(2026, 10, 19, 7, tzinfo=eastern)) == datetime(
        2026, 10, 19, 12, tzinfo=timezone.utc
    )


class TestNumbers:

    @pytest.mark.parametrize(
        "value,expected",
        [(100, 100.0), (12.5, 12.5), ("42.10", 42.1), (" 7 ", 7.0), (0, 0.0)],
    )
    def test_parse_amount_accepts_numbers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", True, float("nan"), float("inf"), [1]])
    def test_parse_amount_rejects_garbage(self, value):
        assert parse_amount(value) is None

    def test_parse_stock_requires_integer_values(self):
        assert parse_stock("12") == 12
        assert parse_stock(3.0) == 3
        assert parse_stock(-2) == -2
        assert parse_stock(3.5) is None
        assert parse_stock("lots") is None

    def test_normalize_id(self):
        assert normalize_id(17) == "17"
        assert normalize_id(" p1 ") == "p1"
        assert normalize_id("") is None
        assert normalize_id(True) is None


class TestOrderModel:

    def test_camel_case_record(self):
        order = Order.model_validate(
            {
                "id": 1001,
                "createdAt": "2026-10-19T09:00:00Z",
                "status": "Completed",
                "paymentStatus": "PAID",
                "total": "99.90",
                "orderItems": [{"productId": 5, "productName": "Mug", "quantity": "2", "unitPrice": 4.5}],
                "customer": {"name": "Ada"},
            }
        )
        assert order.id == "1001"
        assert order.created_at == datetime(2026, 10, 19, 9, tzinfo=timezone.utc)
        assert order.status == "completed"
        assert order.payment_status == "paid"
        assert order.total == pytest.approx(99.9)
        assert order.items[0].product_id == "5"
        assert order.items[0].quantity == 2.0
        assert order.items[0].unit_price == 4.5
        assert order.customer_name == "Ada"

    def test_snake_case_record(self):
        order = Order.model_validate(
            {
                "id": "o1",
                "created_at": "2026-10-19 09:00:00",
                "status": "processing",
                "payment_status": "pending",
                "total": 10,
                "order_items": [{"product_id": "p1", "product_name": "Mug", "quantity": 1, "unit_price": 10}],
                "customer_details": {"name": "Grace"},
            }
        )
        assert order.created_at == datetime(2026, 10, 19, 9, tzinfo=timezone.utc)
        assert order.items[0].product_name == "Mug"
        assert order.customer_name == "Grace"

    def test_lenient_fields(self):
        order = Order.model_validate(
            {"id": "o1", "createdAt": "yesterday", "total": "n/a", "items": [{"productId": "p1"}, "junk"]}
        )
        assert order.created_at is None
        assert order.total == 0.0
        assert len(order.items) == 1
        assert order.status == ""

    def test_negative_line_values_read_as_zero(self):
        order = Order.model_validate(
            {"id": "o1", "items": [{"productId": "p1", "quantity": -3, "price": "-1"}]}
        )
        assert order.items[0].quantity == 0.0
        assert order.items[0].unit_price == 0.0

    def test_missing_id_is_rejected(self):
        with pytest.raises(ValidationError):
            Order.model_validate({"createdAt": "2026-10-19T09:00:00Z", "total": 10})
        with pytest.raises(ValidationError):
            Order.model_validate({"id": "  ", "total": 10})


class TestProductModel:

    def test_aliases_and_coercion(self):
        product = Product.model_validate({"id": 7, "name": "  Wool   Scarf ", "stock": "4", "categoryId": 3})
        assert product.id == "7"
        assert product.name == "Wool Scarf"
        assert product.stock == 4
        assert product.category_id == "3"

    def test_non_integer_stock_is_rejected(self):
        with pytest.raises(ValidationError):
            Product.model_validate({"id": "p1", "name": "Mug", "stock": "plenty"})
        with pytest.raises(ValidationError):
            Product.model_validate({"id": "p1", "name": "Mug", "stock": 2.5})
