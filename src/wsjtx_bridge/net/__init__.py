# src/wsjtx_bridge/net/__init__.py
"""
wsjtx-bridge: Network package

  - messages: WSJT-X message tags, frozen dataclass variants, field schemas
  - codec: binary frame decode/encode + the JSON envelope sent to browsers
  - commands: pydantic models for browser-issued commands
  - transport: Session / DatagramSender seams
  - transport_udp: asyncio datagram endpoint feeding the router
  - transport_memory: in-process fakes for tests
  - router: last-seen peer tracking, session fan-out, command routing

The API layer (wsjtx_bridge.api) only wires these together.
"""

from __future__ import annotations

__all__ = [
    "messages",
    "codec",
    "commands",
    "transport",
    "transport_udp",
    "transport_memory",
    "router",
]
