"""
In-process change feed.

Services publish row-level events (a challenge was created, a bet was
placed) and interested parties subscribe by table with an optional column
filter. Delivering events over the network is left to whatever subscribes.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger("plottwist.services.event_feed")

Callback = Callable[[dict[str, Any]], None]


@dataclass
class Subscription:
    id: int
    table: str
    on_insert: Callback | None = None
    on_update: Callback | None = None
    on_delete: Callback | None = None
    filters: dict[str, Any] = field(default_factory=dict)
    _feed: ChangeFeed | None = None

    def matches(self, record: dict[str, Any]) -> bool:
        return all(record.get(column) == value for column, value in self.filters.items())

    def unsubscribe(self) -> None:
        if self._feed is not None:
            self._feed.unsubscribe(self)


class ChangeFeed:
    """
    Thread-safe publish/subscribe keyed by table name.

    A failing subscriber is logged and skipped; it never fails the
    operation that published the event.
    """

    def __init__(self):
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def subscribe(
        self,
        table: str,
        on_insert: Callback | None = None,
        on_delete: Callback | None = None,
        on_update: Callback | None = None,
        filters: dict[str, Any] | None = None,
    ) -> Subscription:
        subscription = Subscription(
            id=next(self._ids),
            table=table,
            on_insert=on_insert,
            on_update=on_update,
            on_delete=on_delete,
            filters=filters or {},
            _feed=self,
        )
        with self._lock:
            self._subscriptions[table].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(subscription.table, [])
            self._subscriptions[subscription.table] = [s for s in subs if s.id != subscription.id]

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(table, []))

    def publish_insert(self, table: str, record: dict[str, Any]) -> int:
        return self._publish(table, "on_insert", record)

    def publish_update(self, table: str, record: dict[str, Any]) -> int:
        return self._publish(table, "on_update", record)

    def publish_delete(self, table: str, record: dict[str, Any]) -> int:
        return self._publish(table, "on_delete", record)

    def _publish(self, table: str, kind: str, record: dict[str, Any]) -> int:
        """Deliver to matching subscribers. Returns the number notified."""
        with self._lock:
            subs = list(self._subscriptions.get(table, []))

        delivered = 0
        for sub in subs:
            callback = getattr(sub, kind)
            if callback is None or not sub.matches(record):
                continue
            try:
                callback(dict(record))
                delivered += 1
            except Exception:
                logger.exception(f"Change feed subscriber {sub.id} failed on {table}.{kind}")
        return delivered
