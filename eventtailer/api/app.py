"""FastAPI application factory for the event tailer.

Routes:
    GET /healthz  -- liveness, fixed JSON body.
    GET /metrics  -- Prometheus text exposition of the default registry.
    GET /store    -- debug listing of the keys currently in the store.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

_log = structlog.get_logger(component="web")

_HEALTH_BODY = b'{"status": "GOOD"}\n'
_JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


def create_app(store: Any = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        store: Store served by ``/store``.  When None the route reports an
               empty store.
    """
    from eventtailer import __version__

    app = FastAPI(
        title="k8s-event-tailer",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Response:
        return Response(content=_HEALTH_BODY, media_type=_JSON_CONTENT_TYPE)

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)

    @app.get("/store")
    async def store_keys(request: Request) -> JSONResponse:
        current = request.app.state.store
        keys = sorted(current.list_keys()) if current is not None else []
        return JSONResponse(content={"size": len(keys), "keys": keys})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(status_code=500, content={"error": "INTERNAL_ERROR"})

    return app
