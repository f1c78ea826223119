"""
Revenue and ranking analysis over a validated snapshot.

Computes:
- Revenue eligibility of orders
- Revenue series bucketed by day or month
- Top products by revenue (from order lines)
- Top categories by catalog share (from the product list)
"""

from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from ..utils.logger import log
from .models import Order, Product, Category
from .periods import Granularity, TimeWindow

ELIGIBLE_STATUSES_WITHOUT_PAYMENT = frozenset({"completed", "processing"})
UNKNOWN_PRODUCT_NAME = "Unknown product"
UNCATEGORIZED_NAME = "Uncategorized"


@dataclass(frozen=True)
class RevenuePoint:
    key: str
    revenue: float


@dataclass(frozen=True)
class RevenueSeries:
    """Revenue per bucket, parallel to the window's bucket keys."""

    granularity: Granularity
    points: tuple[RevenuePoint, ...]

    @property
    def total(self) -> float:
        return float(sum(p.revenue for p in self.points))

    def __len__(self) -> int:
        return len(self.points)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"key": [p.key for p in self.points], "revenue": [p.revenue for p in self.points]}
        )


@dataclass(frozen=True)
class RankedProduct:
    product_id: str
    name: str
    sales: float
    revenue: float


@dataclass(frozen=True)
class RankedCategory:
    category_id: str | None
    name: str
    count: int
    percentage: float


@dataclass(frozen=True)
class ReportStats:
    """Headline numbers shown above the charts."""

    total_revenue: float
    eligible_orders: int
    orders_in_range: int
    product_count: int


def is_revenue_eligible(order: Order) -> bool:
    """Status rule only: not cancelled, and either paid or already being fulfilled."""
    if order.status == "cancelled":
        return False
    return order.payment_status == "paid" or order.status in ELIGIBLE_STATUSES_WITHOUT_PAYMENT


def orders_in_window(orders: Iterable[Order], window: TimeWindow) -> list[Order]:
    """Orders with a valid creation date inside the window, any status."""
    return [o for o in orders if o.created_at is not None and window.contains(o.created_at)]


def filter_eligible_orders(orders: Iterable[Order], window: TimeWindow) -> list[Order]:
    """
    Select revenue-eligible orders inside the window.

    Input order is preserved. Orders without a parseable creation date are
    simply left out.
    """
    return [o for o in orders_in_window(orders, window) if is_revenue_eligible(o)]


def aggregate_revenue(eligible_orders: list[Order], window: TimeWindow) -> RevenueSeries:
    """
    Sum order totals into the window's buckets.

    Expects output of filter_eligible_orders(). Every seeded bucket is
    present in the result, zero when no order falls into it.
    """
    frame = pd.DataFrame(
        {
            "key": [window.bucket_key(o.created_at) for o in eligible_orders],
            "total": [o.total for o in eligible_orders],
        },
        columns=["key", "total"],
    )
    frame["total"] = frame["total"].astype(float)

    outside = frame[~frame["key"].isin(window.bucket_keys)]
    if len(outside) > 0:
        # Only reachable if an order slipped past the window check
        log.warning(
            f"Dropping {len(outside)} orders outside seeded buckets "
            f"({window.period}): keys {sorted(outside['key'].unique())[:5]}"
        )

    per_bucket = (
        frame.groupby("key")["total"]
        .sum()
        .reindex(list(window.bucket_keys), fill_value=0.0)
    )

    return RevenueSeries(
        granularity=window.granularity,
        points=tuple(RevenuePoint(key=k, revenue=float(v)) for k, v in per_bucket.items()),
    )


def _top_n(frame: pd.DataFrame, metric: str, top_n: int) -> pd.DataFrame:
    """Keep positive rows, sort descending with ties in first-seen order, truncate."""
    if top_n <= 0 or len(frame) == 0:
        return frame.iloc[0:0]
    positive = frame[frame[metric] > 0]
    return positive.sort_values(metric, ascending=False, kind="stable").head(top_n)


def rank_products(
    eligible_orders: list[Order],
    products: list[Product],
    top_n: int = 5,
) -> list[RankedProduct]:
    """
    Top products by revenue over eligible orders' line items.

    Display names prefer the current catalog, then the name captured on the
    order line, then a generic placeholder. Lines without a product id are
    ignored.
    """
    rows = [
        {
            "product_id": item.product_id,
            "captured_name": item.product_name,
            "quantity": item.quantity,
            "line_revenue": item.quantity * item.unit_price,
        }
        for order in eligible_orders
        for item in order.items
        if item.product_id
    ]
    if not rows:
        return []

    lines = pd.DataFrame(rows)
    agg = (
        lines.groupby("product_id", sort=False)
        .agg(
            sales=("quantity", "sum"),
            revenue=("line_revenue", "sum"),
            captured_name=("captured_name", "first"),
        )
        .reset_index()
    )

    catalog = {p.id: p.name for p in products if p.name}
    missing = set(agg["product_id"]) - set(catalog)
    if missing:
        log.debug(f"{len(missing)} ranked products not in catalog, using captured names")

    ranked = _top_n(agg, "revenue", top_n)
    return [
        RankedProduct(
            product_id=row["product_id"],
            name=catalog.get(row["product_id"]) or _or_none(row["captured_name"]) or UNKNOWN_PRODUCT_NAME,
            sales=float(row["sales"]),
            revenue=float(row["revenue"]),
        )
        for row in ranked.to_dict("records")
    ]


def rank_categories(
    products: list[Product],
    categories: list[Category],
    top_n: int = 5,
) -> list[RankedCategory]:
    """
    Top categories by share of the catalog.

    Counts every product in the snapshot, whether or not it sold. This is a
    composition ranking, not a revenue ranking.
    """
    if not products:
        return []

    names = {c.id: c.name for c in categories if c.name}
    composition = (
        pd.DataFrame({"category_id": [p.category_id for p in products]})
        .fillna({"category_id": ""})
        .groupby("category_id", sort=False)
        .size()
        .rename("count")
        .reset_index()
    )
    composition["percentage"] = composition["count"] / len(products) * 100

    ranked = _top_n(composition, "count", top_n)
    return [
        RankedCategory(
            category_id=row["category_id"] or None,
            name=names.get(row["category_id"]) or row["category_id"] or UNCATEGORIZED_NAME,
            count=int(row["count"]),
            percentage=float(row["percentage"]),
        )
        for row in ranked.to_dict("records")
    ]


def compute_report_stats(
    orders: list[Order],
    eligible_orders: list[Order],
    products: list[Product],
    window: TimeWindow,
) -> ReportStats:
    """Summary metrics for the report header."""
    return ReportStats(
        total_revenue=float(sum(o.total for o in eligible_orders)),
        eligible_orders=len(eligible_orders),
        orders_in_range=len(orders_in_window(orders, window)),
        product_count=len(products),
    )


def _or_none(value):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value
