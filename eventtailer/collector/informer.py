"""List-and-watch loop that mirrors one resource kind into a :class:`Store`.

The loop lists every object (paginated), then watches from the list's
resourceVersion.  Each change is applied to the store first and then
dispatched to a :class:`ResourceEventHandler`:

    ADDED / MODIFIED  -> ``on_update(old, new)`` if the key was already
                         stored, otherwise ``on_add(new)``
    DELETED           -> ``on_delete(obj)``

A relist dispatches the same way for every listed object and sends
``on_delete`` for stored keys the server no longer returns.  There is no
resync period.

Recovery
--------
410 Gone (expired resourceVersion) clears the version and relists right
away.  Any other list or watch failure backs off exponentially, 1 s
doubling to 60 s, and the delay resets after a successful list.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from kubernetes_asyncio import watch
from kubernetes_asyncio.client.exceptions import ApiException

from eventtailer.cache.store import Store, object_key
from eventtailer.observability.logging import get_logger

_BACKOFF_MIN_S: float = 1.0
_BACKOFF_MAX_S: float = 60.0
_PAGE_SIZE: int = 500

ListFunc = Callable[..., Awaitable[Any]]


class ResourceEventHandler(Protocol):
    """Receives store notifications.  Methods must return promptly."""

    def on_add(self, obj: Any) -> None: ...

    def on_update(self, old: Any, new: Any) -> None: ...

    def on_delete(self, obj: Any) -> None: ...


class Informer:
    """Keeps *store* in sync with the objects returned by *list_func*.

    *list_func* is a kubernetes_asyncio list call such as
    ``CoreV1Api.list_event_for_all_namespaces``; it is also handed to
    :class:`kubernetes_asyncio.watch.Watch` for the watch phase.
    Positional arguments such as the namespace go in *list_args*: the
    watch reads the response type from the docstring of *list_func*, so it
    must not be wrapped.
    """

    def __init__(
        self,
        list_func: ListFunc,
        store: Store,
        handler: ResourceEventHandler,
        *,
        list_args: tuple[Any, ...] = (),
        watch_timeout_seconds: int = 300,
        page_size: int = _PAGE_SIZE,
    ) -> None:
        self._list_func = list_func
        self._list_args = list_args
        self._store = store
        self._handler = handler
        self._watch_timeout = watch_timeout_seconds
        self._page_size = page_size
        self._log = get_logger("informer")

        self._resource_version: str = ""
        self._backoff_s: float = _BACKOFF_MIN_S

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self, stop: asyncio.Event) -> None:
        """Run the list/watch loop until *stop* is set."""
        loop_task = asyncio.create_task(self._list_and_watch(), name="informer-loop")
        stop_task = asyncio.create_task(stop.wait(), name="informer-stop")
        try:
            await asyncio.wait({loop_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (loop_task, stop_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(loop_task, stop_task, return_exceptions=True)

        if not loop_task.cancelled() and loop_task.exception() is not None:
            raise loop_task.exception()  # type: ignore[misc]
        self._log.info("informer stopped")

    async def _list_and_watch(self) -> None:
        while True:
            if not self._resource_version:
                try:
                    await self._relist()
                except Exception as exc:
                    self._log.error("list failed", error=str(exc))
                    await self._backoff("list_failed")
                    continue

            try:
                await self._watch()
            except ApiException as exc:
                if exc.status == 410:
                    self._log.info("watch expired; relisting", resource_version=self._resource_version)
                    self._resource_version = ""
                else:
                    self._log.error("watch failed", status=exc.status, reason=exc.reason)
                    await self._backoff("watch_failed")
            except Exception as exc:
                self._log.error("watch failed", error=str(exc))
                await self._backoff("watch_failed")

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def _relist(self) -> None:
        items: list[Any] = []
        resource_version = ""
        continue_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"limit": self._page_size}
            if continue_token:
                kwargs["_continue"] = continue_token
            result = await self._list_func(*self._list_args, **kwargs)
            items.extend(getattr(result, "items", None) or [])
            metadata = getattr(result, "metadata", None)
            resource_version = getattr(metadata, "resource_version", "") or ""
            continue_token = getattr(metadata, "_continue", None)
            if not continue_token:
                break

        listed: set[str] = set()
        for obj in items:
            listed.add(object_key(obj))
            self._apply_upsert(obj)

        for key in set(self._store.list_keys()) - listed:
            gone = self._store.get(key)
            if gone is not None:
                self._store.discard(gone)
                self._dispatch("DELETED", gone, None)

        self._resource_version = resource_version
        self._reset_backoff()
        self._log.info("informer synced", items=len(items), resource_version=resource_version)

    # ------------------------------------------------------------------
    # Watch
    # ------------------------------------------------------------------

    async def _watch(self) -> None:
        self._log.debug("watch starting", resource_version=self._resource_version)
        async with watch.Watch() as w:
            async for event in w.stream(
                self._list_func,
                *self._list_args,
                resource_version=self._resource_version,
                timeout_seconds=self._watch_timeout,
                allow_watch_bookmarks=True,
            ):
                self._handle_watch_event(event)
        # Server-side timeout: resume from the last seen version.
        self._reset_backoff()

    def _handle_watch_event(self, event: dict[str, Any]) -> None:
        event_type = str(event.get("type", ""))
        obj = event.get("object")
        raw = event.get("raw_object") or {}

        if event_type == "ERROR":
            status = raw if isinstance(raw, dict) else {}
            raise ApiException(status=int(status.get("code") or 500), reason=str(status.get("message", "")))

        rv = _extract_rv(obj, raw)
        if event_type == "BOOKMARK":
            if rv:
                self._resource_version = rv
            return

        if event_type in ("ADDED", "MODIFIED"):
            self._apply_upsert(obj)
        elif event_type == "DELETED":
            self._store.discard(obj)
            self._dispatch("DELETED", obj, None)
        else:
            self._log.debug("unknown watch event type", type=event_type)
            return

        if rv:
            self._resource_version = rv

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _apply_upsert(self, obj: Any) -> None:
        old = self._store.update(obj)
        if old is None:
            self._dispatch("ADDED", obj, None)
        else:
            self._dispatch("MODIFIED", obj, old)

    def _dispatch(self, notification: str, obj: Any, old: Any) -> None:
        try:
            if notification == "ADDED":
                self._handler.on_add(obj)
            elif notification == "MODIFIED":
                self._handler.on_update(old, obj)
            else:
                self._handler.on_delete(obj)
        except Exception as exc:
            self._log.error(
                "handler failed",
                notification=notification,
                key=_safe_key(obj),
                error=str(exc),
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Back-off
    # ------------------------------------------------------------------

    async def _backoff(self, reason: str) -> None:
        self._log.warning("informer backing off", reason=reason, delay_s=self._backoff_s)
        await asyncio.sleep(self._backoff_s)
        self._backoff_s = min(self._backoff_s * 2, _BACKOFF_MAX_S)

    def _reset_backoff(self) -> None:
        self._backoff_s = _BACKOFF_MIN_S


def _extract_rv(obj: Any, raw: Any) -> str:
    """Return metadata.resourceVersion from the model, else from the raw dict."""
    metadata = getattr(obj, "metadata", None)
    rv = getattr(metadata, "resource_version", None)
    if isinstance(rv, str) and rv:
        return rv
    if isinstance(raw, dict):
        raw_meta = raw.get("metadata")
        if isinstance(raw_meta, dict):
            return str(raw_meta.get("resourceVersion", "") or "")
    return ""


def _safe_key(obj: Any) -> str:
    try:
        return object_key(obj)
    except ValueError:
        return "<unknown>"
