# src/wsjtx_bridge/api/structured_logging.py
from __future__ import annotations

import logging
import os
import time
import uuid
from typing import FrozenSet, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from wsjtx_bridge.net.net_logging import log_event

# Polled by dashboards and the browser UI; logged at DEBUG so they don't drown out traffic.
_QUIET_PATHS: FrozenSet[str] = frozenset({"/v1/health", "/v1/metrics"})


def configure_structured_logging() -> None:
    """Route all logging to stdout as JSONL, one event per line.

    Level comes from WSJTX_BRIDGE_LOG_LEVEL (default INFO). uvicorn's access
    logger is turned down since RequestLogMiddleware already records requests;
    the entry point also runs uvicorn without its own log config.
    Calling it again only updates the level.
    """
    level_name = (os.environ.get("WSJTX_BRIDGE_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not getattr(root, "_wsjtx_bridge_configured", False):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.handlers = [handler]
        setattr(root, "_wsjtx_bridge_configured", True)

    root.setLevel(level)
    for h in root.handlers:
        h.setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` event per HTTP request, tagged with an x-request-id.

    WSJTX_BRIDGE_LOG_REQUESTS=0 disables it (default on). WebSocket traffic
    never passes through here; sessions log through the router instead.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        raw = (os.environ.get("WSJTX_BRIDGE_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = raw not in {"0", "false", "no", "n", "off"}
        self._logger = logging.getLogger("wsjtx_bridge.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        path = str(request.url.path or "")

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None

        try:
            response = await call_next(request)
            status = int(response.status_code)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = f"{type(e).__name__}: {e}"
            raise
        finally:
            level = logging.DEBUG if path in _QUIET_PATHS and status < 500 else logging.INFO
            log_event(
                self._logger,
                "http_request",
                level=level,
                request_id=request_id,
                method=request.method,
                path=path,
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=err,
            )
