"""HTTP layer for the event tailer.

Exposes:
    create_app -- FastAPI application factory (health, metrics, store listing).
    WebServer  -- uvicorn wrapper driven by the shared stop signal.
"""

from eventtailer.api.app import create_app
from eventtailer.api.server import WebServer

__all__ = ["WebServer", "create_app"]
