# src/wsjtx_bridge/net/transport_udp.py
"""
wsjtx-bridge: UDP endpoint

Every datagram is one complete WSJT-X frame; there is no buffering across
datagrams. Received datagrams are handed to the router in arrival order,
one task per datagram. The transport doubles as the router's sender.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set, Tuple

from wsjtx_bridge.net.net_logging import log_event
from wsjtx_bridge.net.router import BridgeRouter

_log = logging.getLogger("wsjtx_bridge.udp")


class BridgeDatagramProtocol(asyncio.DatagramProtocol):
    def __init__(self, router: BridgeRouter) -> None:
        self._router = router
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._tasks: Set[asyncio.Task] = set()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]
        self._router.attach_sender(self._transport)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if self._transport is not None:
            self._router.attach_sender(None)
        self._transport = None
        if exc is not None:
            log_event(_log, "udp_connection_lost", level=logging.WARNING, error=str(exc))

    def datagram_received(self, data: bytes, addr: Any) -> None:
        task = asyncio.get_running_loop().create_task(self._router.handle_datagram(data, addr))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def error_received(self, exc: Exception) -> None:
        # ICMP errors from a previous sendto surface here; the loop keeps going.
        log_event(_log, "udp_error", level=logging.WARNING, error=f"{type(exc).__name__}: {exc}")


async def open_udp_endpoint(
    router: BridgeRouter, host: str, port: int
) -> Tuple[asyncio.DatagramTransport, BridgeDatagramProtocol]:
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: BridgeDatagramProtocol(router),
        local_addr=(host, int(port)),
    )
    sockname = transport.get_extra_info("sockname")
    log_event(_log, "udp_bound", addr=f"{sockname[0]}:{sockname[1]}" if sockname else f"{host}:{port}")
    return transport, protocol
