"""
Reporting periods and their revenue buckets.

A period token maps to a window length. Windows of up to 30 days are bucketed
per day; longer windows always get the 12 calendar months ending with the
current one. Every bucket key is generated up front so empty periods show up
as zeros instead of gaps.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal

import pandas as pd

from .parsers import ensure_utc

Granularity = Literal["day", "month"]

PERIOD_DAYS = {
    "7d": 7,
    "30d": 30,
    "3m": 90,
    "12m": 365,
}
DEFAULT_PERIOD = "12m"
DAILY_LIMIT_DAYS = 30
MONTHLY_BUCKETS = 12


@dataclass(frozen=True)
class TimeWindow:
    """Concrete bucket layout for one reporting pass."""

    period: str
    granularity: Granularity
    bucket_keys: tuple[str, ...]
    range_start: datetime
    range_end: datetime

    def bucket_key(self, ts: datetime) -> str:
        """Bucket key of an instant: ISO date for days, ``YYYY-MM`` for months."""
        ts = ensure_utc(ts)
        if self.granularity == "day":
            return ts.strftime("%Y-%m-%d")
        return ts.strftime("%Y-%m")

    def contains(self, ts: datetime) -> bool:
        """
        On or after ``range_start`` and inside a seeded bucket.

        There is no cut at ``range_end``: an order stamped slightly ahead of
        ``now`` (clock skew) still counts when it lands in today's bucket.
        """
        ts = ensure_utc(ts)
        return ts >= self.range_start and self.bucket_key(ts) in self.bucket_keys

    def __len__(self) -> int:
        return len(self.bucket_keys)


def resolve_window(period: str | None, now: datetime | None = None) -> TimeWindow:
    """
    Resolve a period token into a TimeWindow.

    ``range_start`` is the later of ``now - window`` and the start of the first
    bucket, so every order inside the range has a seeded bucket.
    """
    now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    token = period if period in PERIOD_DAYS else DEFAULT_PERIOD
    days = PERIOD_DAYS[token]

    today = pd.Timestamp(now).normalize()
    if days <= DAILY_LIMIT_DAYS:
        granularity: Granularity = "day"
        buckets = pd.date_range(end=today, periods=days, freq="D")
        keys = tuple(d.strftime("%Y-%m-%d") for d in buckets)
    else:
        granularity = "month"
        current_month = today.tz_localize(None).to_period("M")
        buckets = pd.period_range(end=current_month, periods=MONTHLY_BUCKETS, freq="M")
        keys = tuple(str(p) for p in buckets)
        buckets = buckets.to_timestamp().tz_localize(timezone.utc)

    first_bucket_start = buckets[0].to_pydatetime()
    range_start = max(now - timedelta(days=days), first_bucket_start)

    return TimeWindow(
        period=token,
        granularity=granularity,
        bucket_keys=keys,
        range_start=range_start,
        range_end=now,
    )
