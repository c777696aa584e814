# src/wsjtx_bridge/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from wsjtx_bridge.api.routes_public_parts.health import router as health_router
from wsjtx_bridge.api.routes_public_parts.metrics import router as metrics_router
from wsjtx_bridge.api.routes_ws import router as ws_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])

# Browser UI socket (unversioned, the bundled UI connects to /ws)
public_router.include_router(ws_router)
