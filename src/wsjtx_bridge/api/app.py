from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from wsjtx_bridge.api.config import BridgeConfig, load_bridge_config
from wsjtx_bridge.api.routes_public import public_router
from wsjtx_bridge.api.structured_logging import RequestLogMiddleware
from wsjtx_bridge.net.router import BridgeRouter
from wsjtx_bridge.net.transport_udp import open_udp_endpoint


def create_app(
    *,
    cfg: Optional[BridgeConfig] = None,
    router: Optional[BridgeRouter] = None,
    start_udp: bool = True,
) -> FastAPI:
    """Create the FastAPI application.

    start_udp:
      - True (default): bind the WSJT-X UDP endpoint during lifespan startup
      - False: no socket; tests inject datagrams through app.state.router

    Run with uvicorn as ``uvicorn --factory wsjtx_bridge.api.app:create_app``
    or through ``python -m wsjtx_bridge.api``.
    """
    cfg = cfg or load_bridge_config()
    bridge = router or BridgeRouter(bridge_id=cfg.bridge_id)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        transport: Optional[asyncio.DatagramTransport] = None
        if start_udp:
            transport, _protocol = await open_udp_endpoint(bridge, cfg.udp_host, cfg.udp_port)
        app.state.udp_transport = transport
        try:
            yield
        finally:
            if transport is not None:
                transport.close()
            app.state.udp_transport = None

    # Docs only outside production.
    if cfg.mode == "prod":
        app = FastAPI(
            title="WSJT-X Web Bridge",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=_lifespan,
        )
    else:
        app = FastAPI(title="WSJT-X Web Bridge", lifespan=_lifespan)

    app.state.cfg = cfg
    app.state.router = bridge
    app.state.udp_transport = None

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)

    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cfg.cors_origins),
            allow_credentials=cfg.cors_origins != ("*",),
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    # --- Routers ---
    app.include_router(public_router)

    # Bundled browser UI, mounted last so /ws and /v1/* win.
    static_dir = Path(cfg.static_dir).expanduser()
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="ui")

    return app
