"""
One reporting pass, end to end.

fetch snapshot -> resolve window -> filter -> aggregate / rank ->
classify inventory -> notifications -> feed with read flags -> publish

Everything after the fetch is a pure function of the snapshot (plus the
read-state store for the read flags). A failed fetch keeps the last good
result on display and reports one error for the pass.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol

from ..config import Settings, get_settings
from ..utils.logger import log
from .analysis import (
    RankedCategory,
    RankedProduct,
    ReportStats,
    RevenueSeries,
    aggregate_revenue,
    compute_report_stats,
    filter_eligible_orders,
    rank_categories,
    rank_products,
)
from .exceptions import UpstreamFetchError
from .inventory import InventorySummary, classify_inventory, summarize_inventory
from .models import Snapshot
from .notifications import Notification, NotificationGenerator
from .parsers import ensure_utc
from .periods import TimeWindow, resolve_window
from .read_state import FeedEntry, ReadStateStore, build_feed
from .reconciliation import ResultPublisher


class SnapshotSource(Protocol):
    def fetch(self) -> Snapshot: ...


@dataclass(frozen=True)
class ReportResult:
    """Everything the presentation layer needs for one pass."""

    window: TimeWindow
    revenue: RevenueSeries
    top_products: list[RankedProduct]
    top_categories: list[RankedCategory]
    inventory: InventorySummary
    notifications: list[Notification]
    feed: list[FeedEntry]
    unread_count: int
    stats: ReportStats
    snapshot_version: int
    generated_at: datetime

    def feed_ids(self) -> list[str]:
        return [n.id for n in self.notifications]


@dataclass(frozen=True)
class PassOutcome:
    """
    Result of ReportingPipeline.run().

    ``result`` is the freshest valid report (possibly from an earlier pass);
    ``error`` is set, once, when this pass could not fetch its snapshot.
    """

    result: ReportResult | None
    error: str | None = None
    stale: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def build_report(
    snapshot: Snapshot,
    store: ReadStateStore,
    period: str | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ReportResult:
    """Compute a full report from one snapshot. Performs no writes."""
    settings = settings or get_settings()
    now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)

    window = resolve_window(period or settings.default_period, now)
    eligible = filter_eligible_orders(snapshot.orders, window)

    classifications = classify_inventory(snapshot.products, settings.low_stock_threshold)
    generator = NotificationGenerator(
        recent_window=timedelta(hours=settings.recent_order_window_hours),
        max_recent_orders=settings.max_recent_order_alerts,
    )
    notifications = generator.generate(classifications, snapshot.orders, now)
    feed = build_feed(notifications, store)

    return ReportResult(
        window=window,
        revenue=aggregate_revenue(eligible, window),
        top_products=rank_products(eligible, snapshot.products, settings.top_n),
        top_categories=rank_categories(snapshot.products, snapshot.categories, settings.top_n),
        inventory=summarize_inventory(classifications),
        notifications=notifications,
        feed=feed,
        unread_count=sum(1 for entry in feed if not entry.read),
        stats=compute_report_stats(snapshot.orders, eligible, snapshot.products, window),
        snapshot_version=snapshot.version,
        generated_at=now,
    )


class ReportingPipeline:
    """
    Fetches snapshots and publishes reports.

    Usage:
        pipeline = ReportingPipeline(StorefrontExportClient("data/raw"), store)
        outcome = pipeline.run("30d")
        if outcome.error:
            show_banner(outcome.error)   # outcome.result is the last good report
    """

    def __init__(
        self,
        source: SnapshotSource,
        store: ReadStateStore,
        settings: Settings | None = None,
        publisher: ResultPublisher[ReportResult] | None = None,
    ):
        self.source = source
        self.store = store
        self.settings = settings or get_settings()
        self.publisher = publisher or ResultPublisher()

    @property
    def latest(self) -> ReportResult | None:
        return self.publisher.latest

    def latest_notifications(self) -> list[Notification]:
        return self.latest.notifications if self.latest else []

    def current_feed(self) -> list[FeedEntry]:
        """Latest notifications with read flags as of now, not as of the pass."""
        return build_feed(self.latest_notifications(), self.store)

    def mark_all_read(self) -> None:
        self.store.mark_all_read(n.id for n in self.latest_notifications())

    def run(self, period: str | None = None, now: datetime | None = None) -> PassOutcome:
        try:
            snapshot = self.source.fetch()
        except UpstreamFetchError as e:
            log.error(f"Snapshot fetch failed, serving last good report: {e}")
            return PassOutcome(result=self.latest, error=str(e), stale=self.latest is not None)

        result = build_report(snapshot, self.store, period, now, self.settings)
        accepted = self.publisher.publish(result)

        warnings = [
            f"{report.source_name}: {issue.description}"
            for report in snapshot.quality_reports.values()
            for issue in report.warning_issues
        ]
        return PassOutcome(result=result if accepted else self.latest, warnings=warnings)
