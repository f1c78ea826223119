"""
Inventory health classification.

Each product is placed in exactly one stock status:
- out-of-stock: stock <= 0 (negative counts from bad data included)
- low-stock: 0 < stock <= threshold
- in-stock: everything above the threshold
"""

from dataclasses import dataclass
from typing import Iterable, Literal

from ..config import DEFAULT_LOW_STOCK_THRESHOLD
from .models import Product

StockStatus = Literal["out-of-stock", "low-stock", "in-stock"]


@dataclass(frozen=True)
class StockClassification:
    product: Product
    status: StockStatus


@dataclass(frozen=True)
class InventorySummary:
    """Counts for the inventory header cards."""

    total_products: int
    in_stock: int
    low_stock: int
    out_of_stock: int
    total_units: int


def classify_stock(stock: int, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> StockStatus:
    if stock <= 0:
        return "out-of-stock"
    if stock <= threshold:
        return "low-stock"
    return "in-stock"


def classify_inventory(
    products: Iterable[Product],
    threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> list[StockClassification]:
    """Classify every product, keeping catalog order."""
    return [StockClassification(product=p, status=classify_stock(p.stock, threshold)) for p in products]


def filter_by_status(
    classifications: Iterable[StockClassification],
    status: StockStatus | None,
) -> list[StockClassification]:
    """Inventory table filter; None keeps everything."""
    if status is None:
        return list(classifications)
    return [c for c in classifications if c.status == status]


def summarize_inventory(classifications: list[StockClassification]) -> InventorySummary:
    statuses = [c.status for c in classifications]
    return InventorySummary(
        total_products=len(classifications),
        in_stock=statuses.count("in-stock"),
        low_stock=statuses.count("low-stock"),
        out_of_stock=statuses.count("out-of-stock"),
        # Negative stock is a data error, not a debt of units
        total_units=sum(max(c.product.stock, 0) for c in classifications),
    )
