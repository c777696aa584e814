from __future__ import annotations

import os
import re
import threading
import time
from typing import Dict


_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)

_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def metrics_enabled() -> bool:
    v = (os.environ.get("WSJTX_BRIDGE_METRICS_ENABLED") or "").strip().lower()
    if not v:
        return False
    return v in {"1", "true", "yes", "y", "on"}


def _clean(name: str) -> str:
    n = str(name or "").strip()
    return n if _NAME_RE.match(n) else ""


def inc_counter(name: str, value: int = 1) -> None:
    n = _clean(name)
    if not n:
        return
    with _lock:
        _counters[n] = _counters.get(n, 0) + int(value)


def set_gauge(name: str, value: int) -> None:
    n = _clean(name)
    if not n:
        return
    with _lock:
        _gauges[n] = int(value)


def get_counter(name: str) -> int:
    with _lock:
        return _counters.get(name, 0)


def reset() -> None:
    """Clear all counters and gauges (tests)."""
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    now = int(time.time() * 1000)
    with _lock:
        return {
            "ts_ms": now,
            "started_ms": _started_ms,
            "uptime_ms": now - _started_ms,
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "wsjtx_bridge_") -> str:
    """Prometheus exposition text. Integer counters/gauges only."""
    pre = str(prefix or "").strip() or "wsjtx_bridge_"
    snap = snapshot()
    lines: list[str] = [f"{pre}uptime_ms {int(snap['uptime_ms'])}"]

    counters = snap["counters"]
    for name in sorted(counters):
        lines.append(f"# TYPE {pre}{name} counter")
        lines.append(f"{pre}{name} {int(counters[name])}")

    gauges = snap["gauges"]
    for name in sorted(gauges):
        lines.append(f"# TYPE {pre}{name} gauge")
        lines.append(f"{pre}{name} {int(gauges[name])}")

    return "\n".join(lines) + "\n"
