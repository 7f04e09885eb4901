"""
Live views over store queries.

A subscription delivers its first snapshot synchronously and then, on every
poll of the hub's background scheduler, re-runs the query and delivers the
new snapshot only if it differs from the last one delivered.
"""
import hashlib
import json
import threading
from typing import Any, Callable, List, Optional, Sequence, Tuple
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from electrosense.config import settings
from electrosense.repositories.document_store import DocumentStore, Filter
from electrosense.utils.logging import get_logger
from electrosense.utils.transactions import StoreError

log = get_logger("subscriptions")

Snapshot = List[Any]


def snapshot_tag(snapshot: Snapshot) -> str:
    """Short fingerprint of a snapshot, handed to long-polling clients."""
    payload = json.dumps([doc.model_dump(mode="json") for doc in snapshot], sort_keys=True)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:16]


class Subscription:
    def __init__(
        self,
        hub: "SubscriptionHub",
        collection: str,
        callback: Callable[[Snapshot], None],
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.id = uuid4().hex
        self.hub = hub
        self.collection = collection
        self.callback = callback
        self.filters = list(filters or [])
        self.order_by = order_by
        self.descending = descending
        self.on_error = on_error
        self.active = True
        self._last: Optional[Snapshot] = None
        self._lock = threading.Lock()

    def refresh(self) -> bool:
        """Re-run the query; returns True when a new snapshot was delivered."""
        with self._lock:
            if not self.active:
                return False
            try:
                snapshot = self.hub.store.query(
                    self.collection,
                    filters=self.filters,
                    order_by=self.order_by,
                    descending=self.descending,
                )
            except StoreError as e:
                if self.on_error:
                    self.on_error(e)
                else:
                    log.error("Subscription %s on %s failed: %s", self.id, self.collection, e)
                return False
            if snapshot == self._last:
                return False
            self._last = snapshot
        self.callback(snapshot)
        return True

    def cancel(self):
        with self._lock:
            self.active = False
        self.hub._remove(self)


class SubscriptionHub:
    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        interval_seconds: Optional[float] = None,
    ):
        self.store = store or DocumentStore()
        self.scheduler = scheduler or BackgroundScheduler()
        self.interval_seconds = interval_seconds or settings.SUBSCRIPTION_POLL_SECONDS

    def subscribe(
        self,
        collection: str,
        callback: Callable[[Snapshot], None],
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        sub = Subscription(self, collection, callback, filters, order_by, descending, on_error)
        sub.refresh()
        self.scheduler.add_job(
            sub.refresh,
            "interval",
            seconds=self.interval_seconds,
            id=f"subscription-{sub.id}",
            max_instances=1,
            coalesce=True,
        )
        log.debug("Subscribed %s to %s", sub.id, collection)
        return sub

    def next_snapshot(
        self,
        collection: str,
        known_tag: Optional[str] = None,
        timeout: float = 25.0,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Tuple[str, Snapshot]:
        """
        Long-poll: return (tag, snapshot) as soon as the query result differs
        from the one fingerprinted by `known_tag`, or the unchanged result once
        `timeout` seconds pass. Without a tag the current result is returned
        at once. Raises StoreError when the query fails.
        """
        changed = threading.Event()
        latest = {}

        def _deliver(snapshot: Snapshot):
            latest["tag"] = snapshot_tag(snapshot)
            latest["snapshot"] = snapshot
            if latest["tag"] != known_tag:
                changed.set()

        def _failed(exc: Exception):
            latest["error"] = exc
            changed.set()

        sub = self.subscribe(collection, _deliver, filters, order_by, descending, on_error=_failed)
        try:
            changed.wait(timeout)
        finally:
            sub.cancel()
        if "error" in latest and "tag" not in latest:
            raise latest["error"]
        return latest["tag"], latest["snapshot"]

    def _remove(self, sub: Subscription):
        try:
            self.scheduler.remove_job(f"subscription-{sub.id}")
        except JobLookupError:
            log.debug("Subscription %s had no scheduled job", sub.id)

    def start(self):
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
