"""
Persisted read state for the notification feed.

The store is an add-only set of notification ids kept under a single key of a
small key-value backend, serialized as a JSON array of strings. It is read
back from the backend on every call, so several store instances (one per open
view) sharing a backend always agree. Writes merge under the backend's lock,
so concurrent writers never drop each other's ids. A write that adds at least
one id fires a payload-less ``notifications-updated`` signal; listeners
re-query the store themselves.
"""

from dataclasses import dataclass
import inspect
import json
import os
from pathlib import Path
import threading
from typing import Callable, ContextManager, Iterable, Protocol
import weakref

from ..utils.logger import log
from .exceptions import ReadStateError
from .notifications import Notification

READ_STATE_KEY = "read_notifications"
NOTIFICATIONS_UPDATED = "notifications-updated"


class KeyValueBackend(Protocol):
    """
    Minimal storage interface.

    ``get`` returns None for a missing key and raises OSError when the
    storage itself cannot be read. ``lock`` serializes read-merge-write
    cycles of every store sharing the backend.
    """

    lock: ContextManager

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryBackend:
    """Process-local backend, shared by passing the same instance around."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self.lock = threading.RLock()

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileBackend:
    """
    One ``<key>.json`` file per key inside a directory.

    Backends opened on the same directory share one lock, so separate
    instances inside a process still merge instead of overwriting.
    """

    _locks: dict[Path, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        with self._locks_guard:
            self.lock = self._locks.setdefault(self.directory.resolve(), threading.RLock())

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        # OSError propagates: an unreadable file is not an empty one
        raw = path.read_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            log.warning(f"{path} is not valid UTF-8, treating as empty: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        with self.lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self._path(key)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)


class ChangeSignal:
    """
    Named, payload-less broadcast.

    Bound methods are held weakly: a view that goes away stops being
    notified without having to unsubscribe. Plain functions are held
    strongly until unsubscribed.
    """

    def __init__(self, name: str = NOTIFICATIONS_UPDATED):
        self.name = name
        self._listeners: list[Callable[[], Callable[[], None] | None]] = []
        self._guard = threading.Lock()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        if inspect.ismethod(listener):
            ref = weakref.WeakMethod(listener)
        else:
            def ref(listener=listener):
                return listener

        with self._guard:
            self._listeners.append(ref)

        def unsubscribe() -> None:
            with self._guard:
                if ref in self._listeners:
                    self._listeners.remove(ref)

        return unsubscribe

    def _live(self) -> list[Callable[[], None]]:
        with self._guard:
            live = [(ref, ref()) for ref in self._listeners]
            self._listeners = [ref for ref, listener in live if listener is not None]
        return [listener for _, listener in live if listener is not None]

    @property
    def listener_count(self) -> int:
        return len(self._live())

    def emit(self) -> None:
        # A failing listener must not stop the others or the mutation
        for listener in self._live():
            try:
                listener()
            except Exception:
                log.exception(f"Listener for '{self.name}' failed")


class ReadStateStore:
    """
    Add-only set of acknowledged notification ids.

    Usage:
        store = ReadStateStore(JsonFileBackend("data/state"), ChangeSignal())
        store.mark_read("low-stock-alert-p1")
        store.unread_count(notifications)
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        signal: ChangeSignal | None = None,
        key: str = READ_STATE_KEY,
    ):
        self.backend = backend
        self.signal = signal or ChangeSignal()
        self.key = key

    def _load(self, for_write: bool = False) -> list[str]:
        try:
            raw = self.backend.get(self.key)
        except OSError as e:
            if for_write:
                raise ReadStateError(f"Could not read '{self.key}' before writing: {e}") from e
            log.warning(f"Could not read '{self.key}', showing everything unread: {e}")
            return []
        if raw is None or not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning(f"Read state under '{self.key}' is not valid JSON, starting empty: {e}")
            return []
        if not isinstance(data, list):
            log.warning(f"Read state under '{self.key}' is not a list, starting empty")
            return []
        return list(dict.fromkeys(item for item in data if isinstance(item, str)))

    def read_ids(self) -> set[str]:
        return set(self._load())

    def is_read(self, notification_id: str) -> bool:
        return notification_id in self.read_ids()

    def mark_read(self, notification_id: str) -> None:
        self.mark_all_read([notification_id])

    def mark_all_read(self, notification_ids: Iterable[str]) -> None:
        """
        Add every id; ids already present are left as they are.

        Raises ReadStateError when the stored set cannot be read, rather than
        replacing it with only the new ids.
        """
        requested = [i for i in dict.fromkeys(notification_ids) if isinstance(i, str)]
        if not requested:
            return

        with self.backend.lock:
            current = self._load(for_write=True)
            known = set(current)
            added = [i for i in requested if i not in known]
            if not added:
                return
            self.backend.set(self.key, json.dumps(current + added))

        log.debug(f"Marked {len(added)} notifications read")
        self.signal.emit()

    def unread_count(self, notifications: Iterable[Notification]) -> int:
        read = self.read_ids()
        return sum(1 for n in notifications if n.id not in read)


@dataclass(frozen=True)
class FeedEntry:
    """A notification paired with its current read flag."""

    notification: Notification
    read: bool


def build_feed(notifications: Iterable[Notification], store: ReadStateStore) -> list[FeedEntry]:
    read = store.read_ids()
    return [FeedEntry(notification=n, read=n.id in read) for n in notifications]


def filter_feed(feed: Iterable[FeedEntry], unread_only: bool = False) -> list[FeedEntry]:
    if not unread_only:
        return list(feed)
    return [entry for entry in feed if not entry.read]
