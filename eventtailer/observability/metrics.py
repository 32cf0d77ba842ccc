"""Prometheus collectors for the event tailer.

All collectors live in the default registry and are exposed by the
``/metrics`` route.  ``store_size`` has no value of its own: the event
watcher binds it to the live store with :func:`bind_store_size`.
"""

from __future__ import annotations

from collections.abc import Callable

from prometheus_client import Counter, Gauge

store_size = Gauge(
    "informer_store_size",
    "Number of items in store",
)

events_added_total = Counter(
    "informer_events_add",
    "Number of new events received by the informer",
)

events_updated_total = Counter(
    "informer_events_update",
    "Number of update events received by the informer",
)

events_deleted_total = Counter(
    "informer_events_delete",
    "Number of delete events received by the informer",
)

events_old_total = Counter(
    "informer_events_old",
    "Number of old events ignored by the informer",
)


def bind_store_size(size_fn: Callable[[], int]) -> None:
    """Make the store size gauge report ``size_fn()`` at scrape time."""
    store_size.set_function(lambda: float(size_fn()))
