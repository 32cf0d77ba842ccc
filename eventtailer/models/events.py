"""Event transition types and timestamp helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class TransitionKind(StrEnum):
    """Kind of notification received from the informer."""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def message(self) -> str:
        return f"Event {self.value}"


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def last_seen(event: Any) -> datetime:
    """Return the last-observed timestamp of a core/v1 Event.

    Events written through events.k8s.io/v1 leave ``last_timestamp`` empty
    and carry ``event_time`` instead.  Falls back to the creation timestamp,
    then to the epoch so that an undated event is always treated as old.
    """
    metadata = getattr(event, "metadata", None)
    for candidate in (
        getattr(event, "last_timestamp", None),
        getattr(event, "event_time", None),
        getattr(metadata, "creation_timestamp", None),
    ):
        if isinstance(candidate, datetime):
            return as_utc(candidate)
    return _EPOCH
