"""Application bootstrap for the event tailer.

Wires the components and manages the asyncio lifecycle.
Startup order: logging → K8s client → store/counters → event watcher
              → informer, stats reporter, web server (concurrent tasks)

The informer, the stats reporter and the web server share one
``asyncio.Event`` stop signal.  A termination signal sets it exactly once;
the app then waits for every task to return before closing the API client.
"""

from __future__ import annotations

import asyncio
import os
import signal
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from eventtailer.models.config import TailerConfig
from eventtailer.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import Coroutine

    import structlog

    from eventtailer.api.server import WebServer
    from eventtailer.cache.store import Store
    from eventtailer.collector.counters import EventCounters
    from eventtailer.collector.event_watcher import EventWatcher
    from eventtailer.collector.informer import Informer
    from eventtailer.collector.stats import StatsReporter


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class EventTailerApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``request_stop()`` may be called any number of times, from signal
    handlers or elsewhere; only the first call has an effect.
    """

    def __init__(self, config: TailerConfig) -> None:
        self.config = config

        self._api_client: Any | None = None
        self.store: Store | None = None
        self.counters: EventCounters | None = None
        self.watcher: EventWatcher | None = None
        self.informer: Informer | None = None
        self.stats: StatsReporter | None = None
        self.web: WebServer | None = None

        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._log: structlog.stdlib.BoundLogger = get_logger("app")

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect to the cluster and spawn every component task.

        Raises _ComponentError if the Kubernetes client cannot be configured.
        """
        self._log.info(
            "event tailer starting",
            version=_version(),
            kubeconfig=self.config.kube.kubeconfig,
        )
        await self._start_k8s_client()
        self._build_components()

        assert self.informer is not None
        assert self.stats is not None
        assert self.web is not None
        self._spawn("informer", self.informer.run(self._stop))
        self._spawn("stats", self.stats.run(self._stop))
        self._spawn("web", self.web.run(self._stop))
        self._log.info(
            "Watcher started",
            namespace=self.config.kube.namespace or "<all>",
            port=self.config.api.port,
        )

    async def _start_k8s_client(self) -> None:
        """Load kubeconfig (or in-cluster config) and create the ApiClient."""
        kubeconfig = self.config.kube.kubeconfig
        try:
            from kubernetes_asyncio import client as k8s_client
            from kubernetes_asyncio import config as k8s_config

            if kubeconfig and os.path.exists(kubeconfig):
                await k8s_config.load_kube_config(config_file=kubeconfig)
                self._log.info("k8s client configured from kubeconfig", kubeconfig=kubeconfig)
            else:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")

            self._api_client = k8s_client.ApiClient()
            self._log.debug("API host", host=self._api_client.configuration.host)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _build_components(self) -> None:
        from kubernetes_asyncio import client as k8s_client

        from eventtailer.api import WebServer, create_app
        from eventtailer.cache.store import Store
        from eventtailer.collector.counters import EventCounters
        from eventtailer.collector.event_watcher import EventWatcher
        from eventtailer.collector.informer import Informer
        from eventtailer.collector.stats import StatsReporter

        core_v1 = k8s_client.CoreV1Api(self._api_client)
        namespace = self.config.kube.namespace
        if namespace:
            list_func, list_args = core_v1.list_namespaced_event, (namespace,)
        else:
            list_func, list_args = core_v1.list_event_for_all_namespaces, ()

        self.store = Store()
        self.counters = EventCounters()
        self.watcher = EventWatcher(self.store, self.counters, start_time=datetime.now(tz=UTC))
        self.informer = Informer(
            list_func,
            self.store,
            self.watcher,
            list_args=list_args,
            watch_timeout_seconds=self.config.kube.watch_timeout_seconds,
        )
        self.stats = StatsReporter(self.store, self.counters, self.config.stats.interval_seconds)
        self.web = WebServer(
            create_app(store=self.store),
            port=self.config.api.port,
            grace_seconds=self.config.api.shutdown_grace_seconds,
        )

    def _spawn(self, name: str, coro: Coroutine[Any, Any, None]) -> None:
        self._tasks.append(asyncio.create_task(coro, name=name))

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def request_stop(self) -> bool:
        """Broadcast the stop signal.  Returns False if it was already sent."""
        if self._stop.is_set():
            return False
        self._stop.set()
        return True

    async def wait(self) -> None:
        """Block until stop is requested and every component task has returned."""
        await self._stop.wait()
        self._log.info("event tailer shutting down", tasks=len(self._tasks))

        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                self._log.warning("component cancelled", component=task.get_name())
            elif isinstance(result, BaseException):
                self._log.error("component failed", component=task.get_name(), error=str(result))
        self._tasks.clear()

        await self._close_k8s_client()
        self._log.info("event tailer stopped")

    async def stop(self) -> None:
        self.request_stop()
        await self.wait()

    async def _close_k8s_client(self) -> None:
        if self._api_client is None:
            return
        try:
            await self._api_client.close()
        except Exception as exc:
            self._log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._api_client = None


def _version() -> str:
    from eventtailer import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: TailerConfig) -> None:
    """Create the app, register OS signals, run until a signal arrives."""
    setup_logging(config.log.level, config.log.format)
    log = get_logger("app")
    app = EventTailerApp(config)
    loop = asyncio.get_running_loop()

    def _on_signal(sig: signal.Signals) -> None:
        if app.request_stop():
            log.warning("Signal to terminate received", signal=sig.name)

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _on_signal, sig)

    try:
        await app.start()
    except _ComponentError as exc:
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc

    await app.wait()
