"""
Keeping independent consumers in agreement.

Two problems live here:
- Unread badges in separate views must follow the shared read-state store.
  Each consumer listens to the store's change signal and also polls on a
  bounded interval; both paths run the same refresh().
- Passes can overlap. The publisher keeps whichever result came from the
  newest snapshot, whatever order the passes finish in.
"""

import threading
import time
from typing import Callable, Generic, Iterable, Protocol, TypeVar

from ..utils.logger import log
from .exceptions import UpstreamFetchError
from .notifications import Notification
from .read_state import ReadStateStore

DEFAULT_POLL_INTERVAL_SECONDS = 30.0
BADGE_CAP = 99


def badge_label(count: int) -> str:
    """Text for an unread badge: '' when nothing is unread, '99+' above the cap."""
    if count <= 0:
        return ""
    return f"{BADGE_CAP}+" if count > BADGE_CAP else str(count)


class UnreadCountConsumer:
    """
    One view's unread counter.

    The store signal holds the subscription weakly, so dropping the last
    reference to a consumer also ends its notifications.

    Usage:
        consumer = UnreadCountConsumer(store, lambda: pipeline.latest_notifications())
        with consumer:
            ...
            consumer.poll()   # from the view's tick; refreshes when due
            consumer.unread_count
    """

    def __init__(
        self,
        store: ReadStateStore,
        notifications: Callable[[], Iterable[Notification]],
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.store = store
        self.notifications = notifications
        self.poll_interval = poll_interval
        self.clock = clock
        self.unread_count = 0
        self._last_refresh: float | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> "UnreadCountConsumer":
        if self._unsubscribe is None:
            self._unsubscribe = self.store.signal.subscribe(self.refresh)
        self.refresh()
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "UnreadCountConsumer":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()

    @property
    def badge(self) -> str:
        return badge_label(self.unread_count)

    def is_due(self) -> bool:
        if self._last_refresh is None:
            return True
        return self.clock() - self._last_refresh >= self.poll_interval

    def poll(self) -> bool:
        """Refresh if the polling interval has elapsed. Returns whether it ran."""
        if not self.is_due():
            return False
        self.refresh()
        return True

    def refresh(self) -> int:
        """Re-derive the count from the store; keeps the last count if the feed is unavailable."""
        try:
            current = list(self.notifications())
        except UpstreamFetchError as e:
            log.warning(f"Unread count not refreshed, keeping {self.unread_count}: {e}")
        else:
            self.unread_count = self.store.unread_count(current)
        self._last_refresh = self.clock()
        return self.unread_count


class Versioned(Protocol):
    snapshot_version: int


T = TypeVar("T", bound=Versioned)


class ResultPublisher(Generic[T]):
    """
    Last-write-wins by snapshot version.

    A result built from an older snapshot than the one already published is
    discarded, even if its pass finished later.
    """

    def __init__(self):
        self._latest: T | None = None
        self._listeners: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    @property
    def latest(self) -> T | None:
        return self._latest

    def subscribe(self, listener: Callable[[T], None]) -> None:
        self._listeners.append(listener)

    def publish(self, result: T) -> bool:
        with self._lock:
            current = self._latest
            if current is not None and result.snapshot_version < current.snapshot_version:
                log.info(
                    f"Discarding stale result for snapshot {result.snapshot_version} "
                    f"(have {current.snapshot_version})"
                )
                return False
            self._latest = result
        for listener in list(self._listeners):
            listener(result)
        return True
