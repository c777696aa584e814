from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


class SessionClosed(ConnectionError):
    pass


class InMemorySession:
    """
    Browser session stand-in used by unit tests.

    - Records every text frame sent to it
    - Can be told to fail the next (or every) write
    """

    def __init__(self, *, fail_writes: bool = False) -> None:
        self.sent: List[str] = []
        self.fail_writes = fail_writes
        self.closed = False

    async def send_text(self, data: str) -> None:
        if self.closed or self.fail_writes:
            raise SessionClosed("session is closed")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True


@dataclass(slots=True)
class Datagram:
    payload: bytes
    addr: Tuple[Any, ...]


@dataclass
class InMemorySender:
    """Captures outbound datagrams instead of writing to a socket."""

    sent: List[Datagram] = field(default_factory=list)
    error: Optional[OSError] = None

    def sendto(self, data: bytes, addr: Any = None) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(Datagram(payload=bytes(data), addr=tuple(addr)))  # type: ignore[arg-type]

    @property
    def bytes_sent(self) -> int:
        return sum(len(d.payload) for d in self.sent)
