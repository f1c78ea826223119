"""
Snapshot sources for the storefront admin exports.

THIS FILE CONTAINS THE EXPORT-SPECIFIC HANDLING:
- Keys arrive in camelCase from the storefront hooks and in snake_case from
  the database export (createdAt / created_at, order_items / items, ...)
- Files hold either a bare JSON array or an object wrapping it
  ({"orders": [...]})
- Broken individual records are skipped and reported, never fatal

To add a new source:
1. Produce the three raw record lists (orders, products, categories)
2. Pass them through build_snapshot()
3. Raise UpstreamFetchError when the source itself is unavailable
"""

import itertools
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from ..core.exceptions import SnapshotFormatError, UpstreamFetchError
from ..core.models import (
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    Category,
    Order,
    Product,
    Snapshot,
)
from ..core.parsers import parse_amount
from ..core.quality import DataQualityChecker, DataQualityIssue, DataQualityReport
from ..utils.logger import log

M = TypeVar("M", bound=BaseModel)


def _raw(record: Any, *keys: str) -> Any:
    """First present value among alternative key spellings."""
    if not isinstance(record, dict):
        return None
    for key in keys:
        if key in record:
            return record[key]
    return None


def _record_key(record: Any, index: int) -> Any:
    return _raw(record, "id") or f"#{index}"


def _validate_records(
    model: type[M], records: list[Any], checker: DataQualityChecker
) -> list[tuple[Any, M]]:
    """Validate each record on its own; failures are reported and skipped."""
    accepted = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            checker.record_rejected(f"#{index}", "record is not an object")
            continue
        try:
            accepted.append((record, model.model_validate(record)))
        except ValidationError as e:
            reason = e.errors()[0].get("msg", "validation failed")
            checker.record_rejected(_record_key(record, index), reason)
    return accepted


def _log_report(report: DataQualityReport) -> None:
    for issue in report.issues:
        log.warning(f"{report.source_name}: {issue.column}: {issue.description}")


def load_orders(records: list[Any]) -> tuple[list[Order], DataQualityReport]:
    """
    Validate raw orders.

    Handling:
    - Unparseable creation dates are kept as None (order excluded from revenue)
    - Non-numeric totals read as 0
    - Unknown statuses are kept and reported
    """
    checker = DataQualityChecker("Orders")
    accepted = _validate_records(Order, records, checker)

    frame = pd.DataFrame(
        [
            {
                "id": order.id,
                "created_at_raw": _raw(raw, "created_at", "createdAt"),
                "created_at": order.created_at,
                "total_raw": _raw(raw, "total"),
                "total_parsed": parse_amount(_raw(raw, "total")),
                "status": order.status or None,
                "payment_status": order.payment_status or None,
            }
            for raw, order in accepted
        ]
    )
    checker.check_unparsed("created_at_raw", "created_at", "unparsed_date")
    checker.check_unparsed("total_raw", "total_parsed", "invalid_number")
    checker.check_invalid_values("status", ORDER_STATUSES)
    checker.check_invalid_values("payment_status", PAYMENT_STATUSES)

    report = checker.run(frame, total_rows=len(records))
    _log_report(report)
    return [order for _, order in accepted], report


def load_products(records: list[Any]) -> tuple[list[Product], DataQualityReport]:
    """
    Validate raw products.

    Handling:
    - Products without an integer stock level are skipped
    - Negative stock is kept (classified as out of stock) and reported
    """
    checker = DataQualityChecker("Products")
    accepted = _validate_records(Product, records, checker)
    products = [product for _, product in accepted]

    def check_negative_stock(d: pd.DataFrame) -> list[DataQualityIssue]:
        negative = d["stock"] < 0
        count = int(negative.sum())
        if count == 0:
            return []
        return [
            DataQualityIssue(
                column="stock",
                issue_type="negative_stock",
                severity="info",
                count=count,
                percentage=(count / len(d)) * 100,
                sample_values=d.loc[negative, "id"].head(5).tolist(),
                description=f"{count} products have negative stock (treated as out of stock)",
            )
        ]

    checker.add_check(check_negative_stock)
    frame = pd.DataFrame([{"id": p.id, "stock": p.stock} for p in products])
    report = checker.run(frame, total_rows=len(records))
    _log_report(report)
    return products, report


def load_categories(records: list[Any]) -> tuple[list[Category], DataQualityReport]:
    checker = DataQualityChecker("Categories")
    accepted = _validate_records(Category, records, checker)
    categories = [category for _, category in accepted]
    report = checker.run(pd.DataFrame([{"id": c.id} for c in categories]), total_rows=len(records))
    _log_report(report)
    return categories, report


def build_snapshot(
    orders: list[Any],
    products: list[Any],
    categories: list[Any],
    fetched_at: datetime | None = None,
    version: int = 0,
) -> Snapshot:
    """Validate raw records once and wrap them in a Snapshot."""
    valid_orders, orders_report = load_orders(orders)
    valid_products, products_report = load_products(products)
    valid_categories, categories_report = load_categories(categories)

    product_ids = {p.id for p in valid_products}
    unknown = {
        item.product_id
        for order in valid_orders
        for item in order.items
        if item.product_id and item.product_id not in product_ids
    }
    if unknown:
        orders_report.issues.append(
            DataQualityIssue(
                column="items.product_id",
                issue_type="missing_reference",
                severity="info",
                count=len(unknown),
                percentage=0.0,
                sample_values=sorted(unknown)[:5],
                description=f"{len(unknown)} ordered products are not in the catalog",
            )
        )

    return Snapshot(
        orders=valid_orders,
        products=valid_products,
        categories=valid_categories,
        fetched_at=fetched_at or datetime.now(timezone.utc),
        version=version,
        quality_reports={
            "orders": orders_report,
            "products": products_report,
            "categories": categories_report,
        },
    )


class InMemorySource:
    """Snapshot source over raw records already in memory (tests, notebooks)."""

    def __init__(
        self,
        orders: list[Any],
        products: list[Any],
        categories: list[Any] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.orders = orders
        self.products = products
        self.categories = categories or []
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._versions = itertools.count(1)

    def fetch(self) -> Snapshot:
        return build_snapshot(
            self.orders,
            self.products,
            self.categories,
            fetched_at=self.clock(),
            version=next(self._versions),
        )


class StorefrontExportClient:
    """
    Loads snapshots from a directory of storefront JSON exports.

    Expected files:
    - orders.json (required)
    - products.json (required)
    - categories.json (optional)
    """

    ORDERS_FILE = "orders.json"
    PRODUCTS_FILE = "products.json"
    CATEGORIES_FILE = "categories.json"

    def __init__(self, data_dir: Path | str, clock: Callable[[], datetime] | None = None):
        self.data_dir = Path(data_dir)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._versions = itertools.count(1)

    def fetch(self) -> Snapshot:
        """Read all exports; raises UpstreamFetchError if a required one is unusable."""
        orders = self._read_records(self.ORDERS_FILE, "orders")
        products = self._read_records(self.PRODUCTS_FILE, "products")
        categories = self._read_records(self.CATEGORIES_FILE, "categories", required=False)
        snapshot = build_snapshot(
            orders,
            products,
            categories,
            fetched_at=self.clock(),
            version=next(self._versions),
        )
        log.info(
            f"Loaded snapshot v{snapshot.version}: {len(snapshot.orders)} orders, "
            f"{len(snapshot.products)} products, {len(snapshot.categories)} categories"
        )
        return snapshot

    def _read_records(self, filename: str, wrapper_key: str, required: bool = True) -> list[Any]:
        path = self.data_dir / filename
        if not path.exists():
            if required:
                raise UpstreamFetchError(f"{path} not found")
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise UpstreamFetchError(f"Could not read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"{path} is not valid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise SnapshotFormatError(f"{path} is not valid UTF-8: {e}") from e

        # Wrapped exports: {"orders": [...], "export_date": ...}
        if isinstance(data, dict):
            data = data.get(wrapper_key)
        if not isinstance(data, list):
            raise SnapshotFormatError(f"{path} does not contain a list of {wrapper_key}")
        return data
