"""Event watcher: reports fresh core/v1 Events and drains them from the store.

The store is only a staging area.  Each notification is classified, reported
when fresh, counted, and then removed from the store, so the store size
reflects notifications in flight rather than the number of cluster events.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from eventtailer.cache.store import ObjectNotFoundError, Store
from eventtailer.collector.classifier import is_old
from eventtailer.collector.counters import EventCounters
from eventtailer.models.events import TransitionKind, last_seen
from eventtailer.observability.logging import TIMESTAMP_FORMAT, get_logger
from eventtailer.observability.metrics import (
    bind_store_size,
    events_added_total,
    events_deleted_total,
    events_old_total,
    events_updated_total,
)

_TRANSITION_METRICS = {
    TransitionKind.ADDED: events_added_total,
    TransitionKind.UPDATED: events_updated_total,
    TransitionKind.DELETED: events_deleted_total,
}


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _format_age(seconds: float) -> str:
    """Render an age rounded to the nearest second as ``H:MM:SS``.

    Halves round away from zero, so 2.5 s renders as ``0:00:03``.
    """
    whole = math.floor(abs(seconds) + 0.5)
    sign = "-" if seconds < 0 and whole else ""
    return sign + str(timedelta(seconds=whole))


class EventWatcher:
    """Informer handler for v1.Event objects.

    Implements :class:`~eventtailer.collector.informer.ResourceEventHandler`.
    """

    def __init__(
        self,
        store: Store,
        counters: EventCounters,
        start_time: datetime | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._counters = counters
        self._clock = clock
        self._start_time = start_time or clock()
        self._log = get_logger("watcher")
        bind_store_size(lambda: len(self._store))

    @property
    def start_time(self) -> datetime:
        return self._start_time

    # ------------------------------------------------------------------
    # ResourceEventHandler
    # ------------------------------------------------------------------

    def on_add(self, obj: Any) -> None:
        self._handle(obj, TransitionKind.ADDED)
        self._drain(obj, TransitionKind.ADDED)

    def on_update(self, old: Any, new: Any) -> None:
        self._handle(new, TransitionKind.UPDATED)
        self._drain(new, TransitionKind.UPDATED)

    def on_delete(self, obj: Any) -> None:
        self._handle(obj, TransitionKind.DELETED)
        # Already removed by the informer; discard never raises.
        self._store.discard(obj)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle(self, event: Any, kind: TransitionKind) -> None:
        if is_old(last_seen(event), self._start_time):
            self._counters.increment_old()
            events_old_total.inc()
            return
        self._report(event, kind)

    def _report(self, event: Any, kind: TransitionKind) -> None:
        seen = last_seen(event)
        age = _format_age((self._clock() - seen).total_seconds())
        metadata = event.metadata
        self._log.info(
            kind.message,
            namespace=metadata.namespace or "",
            name=metadata.name,
            version=metadata.resource_version or "",
            event_msg=event.message or "",
            last_timestamp=seen.strftime(TIMESTAMP_FORMAT),
            age=age,
            count=event.count or 0,
        )
        self._counters.increment(kind)
        _TRANSITION_METRICS[kind].inc()

    def _drain(self, obj: Any, kind: TransitionKind) -> None:
        try:
            self._store.delete(obj)
        except ObjectNotFoundError as exc:
            self._log.error("Could not delete object", key=exc.key, operation=str(kind), error=str(exc))
