# Core reporting engine: pure functions over a validated Snapshot,
# plus the persisted read state shared by every view

from .exceptions import StorefrontInsightsError, UpstreamFetchError, SnapshotFormatError, ReadStateError
from .models import Order, OrderItem, Product, Category, Snapshot
from .parsers import TimestampParser, parse_amount, parse_stock
from .quality import DataQualityIssue, DataQualityReport, DataQualityChecker
from .periods import TimeWindow, resolve_window
from .analysis import (
    RevenueSeries,
    RankedProduct,
    RankedCategory,
    ReportStats,
    is_revenue_eligible,
    filter_eligible_orders,
    aggregate_revenue,
    rank_products,
    rank_categories,
    compute_report_stats,
)
from .inventory import (
    StockClassification,
    InventorySummary,
    classify_stock,
    classify_inventory,
    filter_by_status,
    summarize_inventory,
)
from .notifications import Notification, NotificationGenerator, format_relative_time
from .read_state import (
    ChangeSignal,
    FeedEntry,
    InMemoryBackend,
    JsonFileBackend,
    ReadStateStore,
    build_feed,
    filter_feed,
)
from .reconciliation import ResultPublisher, UnreadCountConsumer, badge_label
from .pipeline import PassOutcome, ReportResult, ReportingPipeline, build_report

__all__ = [
    "StorefrontInsightsError",
    "UpstreamFetchError",
    "SnapshotFormatError",
    "ReadStateError",
    "Order",
    "OrderItem",
    "Product",
    "Category",
    "Snapshot",
    "TimestampParser",
    "parse_amount",
    "parse_stock",
    "DataQualityIssue",
    "DataQualityReport",
    "DataQualityChecker",
    "TimeWindow",
    "resolve_window",
    "RevenueSeries",
    "RankedProduct",
    "RankedCategory",
    "ReportStats",
    "is_revenue_eligible",
    "filter_eligible_orders",
    "aggregate_revenue",
    "rank_products",
    "rank_categories",
    "compute_report_stats",
    "StockClassification",
    "InventorySummary",
    "classify_stock",
    "classify_inventory",
    "filter_by_status",
    "summarize_inventory",
    "Notification",
    "NotificationGenerator",
    "format_relative_time",
    "ChangeSignal",
    "FeedEntry",
    "InMemoryBackend",
    "JsonFileBackend",
    "ReadStateStore",
    "build_feed",
    "filter_feed",
    "ResultPublisher",
    "UnreadCountConsumer",
    "badge_label",
    "PassOutcome",
    "ReportResult",
    "ReportingPipeline",
    "build_report",
]
