"""Per-table, per-owner change notifications.

Subscribers get a ChangeEvent after each committed write and are expected
to re-fetch what they display. Every subscription is explicit and must be
closed (or used as a context manager) to stop delivery.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Iterable

from src.models.reseller import ChangeEvent

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, feed: ChangeFeed, table: str, owner_id: str, handler: ChangeHandler):
        self.subscription_id = str(uuid.uuid4())
        self.table = table
        self.owner_id = owner_id
        self.handler = handler
        self._feed = feed
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Watch:
    """Several subscriptions for one owner that share a single callback."""

    def __init__(self, subscriptions: list[Subscription]):
        self.subscriptions = subscriptions

    def close(self) -> None:
        for subscription in self.subscriptions:
            subscription.close()

    def __enter__(self) -> Watch:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChangeFeed:
    def __init__(self) -> None:
        self._subscriptions: dict[tuple[str, str], list[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, table: str, owner_id: str, handler: ChangeHandler) -> Subscription:
        subscription = Subscription(self, table, owner_id, handler)
        with self._lock:
            self._subscriptions.setdefault((table, owner_id), []).append(subscription)
        logger.debug("Subscribed %s to %s/%s", subscription.subscription_id, table, owner_id)
        return subscription

    def watch(self, owner_id: str, tables: Iterable[str], on_change: Callable[[], None]) -> Watch:
        """Calls on_change (no arguments) after a write to any of the tables."""
        return Watch([self.subscribe(table, owner_id, lambda _event: on_change()) for table in tables])

    def publish(self, event: ChangeEvent) -> int:
        """Delivers to every open subscriber of (table, owner). Returns the delivery count."""
        with self._lock:
            targets = list(self._subscriptions.get((event.table, event.owner_id), []))

        delivered = 0
        for subscription in targets:
            if subscription.closed:
                continue
            try:
                subscription.handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Change handler failed for %s/%s (%s %s)",
                    event.table,
                    event.owner_id,
                    event.change_type.value,
                    event.record_id,
                )
        return delivered

    def subscriber_count(self, table: str, owner_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get((table, owner_id), []))

    def _remove(self, subscription: Subscription) -> None:
        key = (subscription.table, subscription.owner_id)
        with self._lock:
            remaining = [s for s in self._subscriptions.get(key, []) if s is not subscription]
            if remaining:
                self._subscriptions[key] = remaining
            else:
                self._subscriptions.pop(key, None)
        logger.debug("Closed subscription %s", subscription.subscription_id)
