"""
Alert and event notifications derived from a snapshot.

Notifications are recomputed on every pass and never stored. Their ids are
built only from (type, source entity id), so the same condition always yields
the same id and the read-state store can recognize it across passes.
"""

from datetime import datetime, timedelta
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field

from .inventory import StockClassification
from .models import Order
from .parsers import ensure_utc

NotificationType = Literal["out-of-stock-alert", "low-stock-alert", "new-order"]
Severity = Literal["info", "warning", "error"]

RECENT_ORDER_WINDOW = timedelta(hours=24)
MAX_RECENT_ORDER_ALERTS = 10


class Notification(BaseModel):
    """One entry of the notification feed."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Deterministic id: '{type}-{entity id}'")
    type: NotificationType
    severity: Severity
    timestamp: datetime
    title: str
    message: str
    product_id: str | None = None
    order_id: str | None = None


def notification_id(notification_type: NotificationType, entity_id: str) -> str:
    return f"{notification_type}-{entity_id}"


class NotificationGenerator:
    """
    Builds the notification list for one pass.

    Stock alerts come from the inventory classification; order events come
    from orders created in the trailing window before ``now``, keeping only
    the most recent ones.
    """

    def __init__(
        self,
        recent_window: timedelta = RECENT_ORDER_WINDOW,
        max_recent_orders: int = MAX_RECENT_ORDER_ALERTS,
    ):
        self.recent_window = recent_window
        self.max_recent_orders = max_recent_orders

    def generate(
        self,
        classifications: Iterable[StockClassification],
        orders: Iterable[Order],
        now: datetime,
    ) -> list[Notification]:
        """Return notifications newest first; equal timestamps keep input order."""
        now = ensure_utc(now)
        notifications = self.stock_alerts(classifications, now)
        notifications.extend(self.order_events(orders, now))
        return sorted(notifications, key=lambda n: n.timestamp, reverse=True)

    def stock_alerts(
        self, classifications: Iterable[StockClassification], now: datetime
    ) -> list[Notification]:
        alerts = []
        for c in classifications:
            product = c.product
            label = product.name or product.id
            if c.status == "out-of-stock":
                alerts.append(
                    Notification(
                        id=notification_id("out-of-stock-alert", product.id),
                        type="out-of-stock-alert",
                        severity="error",
                        timestamp=now,
                        title="Out of stock",
                        message=f'"{label}" is out of stock ({product.stock} units)',
                        product_id=product.id,
                    )
                )
            elif c.status == "low-stock":
                alerts.append(
                    Notification(
                        id=notification_id("low-stock-alert", product.id),
                        type="low-stock-alert",
                        severity="warning",
                        timestamp=now,
                        title="Low stock",
                        message=f'"{label}" is running low ({product.stock} units left)',
                        product_id=product.id,
                    )
                )
        return alerts

    def order_events(self, orders: Iterable[Order], now: datetime) -> list[Notification]:
        cutoff = now - self.recent_window
        recent = [
            o for o in orders
            if o.created_at is not None and cutoff < o.created_at <= now
        ]
        recent.sort(key=lambda o: o.created_at, reverse=True)

        return [
            Notification(
                id=notification_id("new-order", order.id),
                type="new-order",
                severity="info",
                timestamp=order.created_at,
                title="New order",
                message=f"New order from {order.customer_name or 'a customer'} ({order.total:.2f})",
                order_id=order.id,
            )
            for order in recent[: max(self.max_recent_orders, 0)]
        ]


def format_relative_time(ts: datetime, now: datetime) -> str:
    """Short age label for the feed: 'just now', '5 min ago', '3h ago', '2d ago' or a date."""
    elapsed = ensure_utc(now) - ensure_utc(ts)
    minutes = int(elapsed.total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} min ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return ensure_utc(ts).strftime("%Y-%m-%d")
