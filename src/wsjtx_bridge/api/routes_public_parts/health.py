from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    """Liveness plus the router's view of the world.

    ``peer`` is the last WSJT-X address seen (null until the first datagram).
    """
    bridge = getattr(request.app.state, "router", None)
    if bridge is None:
        return {"ok": False, "ts_ms": _now_ms(), "error": "router_not_attached"}
    out: Dict[str, Any] = {"ok": True, "ts_ms": _now_ms()}
    out.update(bridge.snapshot())
    return out
