"""uvicorn wrapper that follows the shared stop signal."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI

from eventtailer.observability.logging import get_logger


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the application."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class WebServer:
    """Serves *app* until the stop signal, then shuts down gracefully.

    In-flight requests get ``grace_seconds`` to finish before uvicorn
    closes the remaining connections.
    """

    def __init__(self, app: FastAPI, port: int, grace_seconds: int = 10, host: str = "0.0.0.0") -> None:
        self._port = port
        self._grace = grace_seconds
        self._log = get_logger("web")
        config = uvicorn.Config(
            app=app,
            host=host,
            port=port,
            log_config=None,  # structlog handles all logging
            access_log=False,
            timeout_graceful_shutdown=grace_seconds,
        )
        self._server = _Server(config)

    @property
    def started(self) -> bool:
        return bool(self._server.started)

    async def run(self, stop: asyncio.Event) -> None:
        self._log.info("Starting web server", port=self._port)
        serve_task = asyncio.create_task(self._serve(), name="web-serve")
        stop_task = asyncio.create_task(stop.wait(), name="web-stop")
        await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

        if not stop_task.done():
            # The server ended on its own; nothing left to shut down.
            stop_task.cancel()
            await asyncio.gather(stop_task, return_exceptions=True)
            return

        self._server.should_exit = True
        try:
            await asyncio.wait_for(serve_task, timeout=self._grace + 1)
        except TimeoutError:
            self._log.error("web server did not stop within grace period", grace_s=self._grace)
        except Exception as exc:
            self._log.error("Error stopping web server", error=str(exc))
        self._log.info("Shut down web server")

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit:
            # uvicorn exits when it cannot bind; the rest of the app keeps running.
            self._log.error("web server failed to start", port=self._port)
