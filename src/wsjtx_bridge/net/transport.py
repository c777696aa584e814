"""
wsjtx-bridge: Transport seams

The router talks to two kinds of endpoints:

  * browser sessions: anything that can ``await send_text(str)``
    (a Starlette ``WebSocket`` satisfies this directly)
  * the datagram side: anything with ``sendto(bytes, addr)``
    (an ``asyncio.DatagramTransport`` satisfies this directly)

This module is pure structure: no sockets here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, runtime_checkable


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PeerAddr:
    """Network address of a WSJT-X instance.

    IPv6 peers keep flowinfo and scope_id so replies to a link-local
    address leave through the interface the datagram came in on.
    """

    host: str
    port: int
    flowinfo: Optional[int] = None
    scope_id: Optional[int] = None

    def as_tuple(self) -> Tuple[Any, ...]:
        """Address in the form sendto() expects for this family."""
        if self.scope_id is None:
            return (self.host, self.port)
        return (self.host, self.port, self.flowinfo or 0, self.scope_id)

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @classmethod
    def from_sockaddr(cls, addr: Any) -> "PeerAddr":
        # IPv6 sockaddrs carry (host, port, flowinfo, scope_id)
        if len(addr) >= 4:
            return cls(host=str(addr[0]), port=int(addr[1]), flowinfo=int(addr[2]), scope_id=int(addr[3]))
        return cls(host=str(addr[0]), port=int(addr[1]))


# ---------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------

@runtime_checkable
class Session(Protocol):
    """One connected browser."""

    async def send_text(self, data: str) -> None: ...


@runtime_checkable
class DatagramSender(Protocol):
    def sendto(self, data: bytes, addr: Any = None) -> None: ...
