import os
from dataclasses import dataclass
from typing import List, Tuple

from wsjtx_bridge.net.router import DEFAULT_BRIDGE_ID


@dataclass(frozen=True)
class BridgeConfig:
    mode: str  # "prod" | "dev"
    udp_host: str
    udp_port: int
    http_host: str
    http_port: int
    bridge_id: str
    static_dir: str
    cors_origins: Tuple[str, ...]


def _env_str(name: str, default: str = "") -> str:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return str(default)
    return v.strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(str(os.environ.get(name, str(default))).strip())
    except ValueError:
        return int(default)


def _env_port(name: str, default: int) -> int:
    p = _env_int(name, default)
    if p < 0 or p > 65535:
        raise ValueError(f"{name} must be a port number (0-65535), got {p}")
    return p


def parse_cors_origins(raw: str, mode: str) -> List[str]:
    """Parse a comma-separated origin allowlist.

    Policy:
      - empty -> CORS disabled
      - "*" is rejected in prod mode, allowed otherwise
    """
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if "*" in origins:
        if mode == "prod":
            raise ValueError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in WSJTX_BRIDGE_CORS_ORIGINS."
            )
        return ["*"]
    return origins


def load_bridge_config() -> BridgeConfig:
    mode = _env_str("WSJTX_BRIDGE_MODE", "prod").lower()
    return BridgeConfig(
        mode=mode,
        udp_host=_env_str("WSJTX_BRIDGE_UDP_HOST", "0.0.0.0"),
        udp_port=_env_port("WSJTX_BRIDGE_UDP_PORT", 2237),
        http_host=_env_str("WSJTX_BRIDGE_HTTP_HOST", "0.0.0.0"),
        http_port=_env_port("WSJTX_BRIDGE_HTTP_PORT", 8080),
        bridge_id=_env_str("WSJTX_BRIDGE_ID", DEFAULT_BRIDGE_ID),
        static_dir=_env_str("WSJTX_BRIDGE_STATIC_DIR", "./dist"),
        cors_origins=tuple(parse_cors_origins(os.environ.get("WSJTX_BRIDGE_CORS_ORIGINS", ""), mode)),
    )
