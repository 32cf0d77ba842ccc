"""Keyed in-memory object store maintained by the informer.

Objects are keyed ``namespace/name`` (``name`` alone for cluster-scoped
objects).  Every method takes the store lock, so readers such as the stats
reporter and the ``/metrics`` scrape may run alongside informer callbacks.
"""

from __future__ import annotations

import threading
from typing import Any


class ObjectNotFoundError(KeyError):
    """Raised by :meth:`Store.delete` when no object is stored under the key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"object {self.key!r} not found in store"


def object_key(obj: Any) -> str:
    """Return the ``namespace/name`` key of a Kubernetes object.

    Accepts deserialized client models as well as raw dicts.
    """
    if isinstance(obj, dict):
        metadata = obj.get("metadata") or {}
        namespace = str(metadata.get("namespace") or "")
        name = str(metadata.get("name") or "")
    else:
        metadata = getattr(obj, "metadata", None)
        namespace = str(getattr(metadata, "namespace", "") or "")
        name = str(getattr(metadata, "name", "") or "")
    if not name:
        raise ValueError("object has no metadata.name")
    return f"{namespace}/{name}" if namespace else name


class Store:
    """Thread-safe keyed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Any] = {}

    def add(self, obj: Any) -> None:
        key = object_key(obj)
        with self._lock:
            self._items[key] = obj

    def update(self, obj: Any) -> Any | None:
        """Store *obj* and return the object it replaced, if any."""
        key = object_key(obj)
        with self._lock:
            old = self._items.get(key)
            self._items[key] = obj
        return old

    def delete(self, obj: Any) -> None:
        """Remove *obj*; raises :class:`ObjectNotFoundError` if it is absent."""
        key = object_key(obj)
        with self._lock:
            if key not in self._items:
                raise ObjectNotFoundError(key)
            del self._items[key]

    def discard(self, obj: Any) -> Any | None:
        """Remove *obj* if present and return the stored object."""
        key = object_key(obj)
        with self._lock:
            return self._items.pop(key, None)

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._items.get(key)

    def list_keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items
