from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, Optional

from pydantic import ValidationError

from wsjtx_bridge.metrics import inc_counter, set_gauge
from wsjtx_bridge.net.codec import (
    UnsupportedTypeError,
    WireError,
    decode_message,
    dumps_envelope,
    encode_message,
)
from wsjtx_bridge.net.commands import COMMAND_MODELS, CommandEnvelope
from wsjtx_bridge.net.messages import Decode, WireMessage, msg_type_of
from wsjtx_bridge.net.net_logging import log_event
from wsjtx_bridge.net.transport import DatagramSender, PeerAddr, Session

DEFAULT_BRIDGE_ID = "WSJTX-WEB"

_log = logging.getLogger("wsjtx_bridge.router")


class RouterError(RuntimeError):
    code = "router_error"


class CommandParseError(RouterError):
    code = "invalid_command"


class NoPeerError(RouterError):
    code = "no_peer"


class NotBoundError(RouterError):
    code = "udp_not_bound"


class SendFailed(RouterError):
    code = "send_failed"


class PeerCell:
    """Last-write-wins slot holding the most recent WSJT-X address."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._addr: Optional[PeerAddr] = None

    def set(self, addr: PeerAddr) -> None:
        with self._lock:
            self._addr = addr

    def get(self) -> Optional[PeerAddr]:
        with self._lock:
            return self._addr


class BridgeRouter:
    """Routes WSJT-X datagrams to browser sessions and browser commands back to WSJT-X.

    One instance is shared by the UDP protocol and every WebSocket handler.
    Session membership is guarded by an asyncio lock that is held for the
    whole broadcast, so a broadcast sees a fixed membership and never writes
    to a session after its removal returned.
    """

    def __init__(self, *, bridge_id: str = DEFAULT_BRIDGE_ID, sender: Optional[DatagramSender] = None) -> None:
        self.bridge_id = bridge_id
        self._peer = PeerCell()
        self._sender = sender
        self._sessions: Dict[int, Session] = {}
        self._sessions_lock = asyncio.Lock()

    # -------------------------
    # state
    # -------------------------

    @property
    def peer(self) -> Optional[PeerAddr]:
        return self._peer.get()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @property
    def udp_bound(self) -> bool:
        return self._sender is not None

    def attach_sender(self, sender: Optional[DatagramSender]) -> None:
        self._sender = sender

    def snapshot(self) -> Dict[str, Any]:
        peer = self.peer
        return {
            "peer": str(peer) if peer is not None else None,
            "sessions": self.session_count,
            "udp_bound": self.udp_bound,
            "bridge_id": self.bridge_id,
        }

    # -------------------------
    # sessions
    # -------------------------

    async def add_session(self, session: Session) -> None:
        async with self._sessions_lock:
            self._sessions[id(session)] = session
            n = len(self._sessions)
        set_gauge("sessions", n)
        log_event(_log, "session_added", sessions=n)

    async def remove_session(self, session: Session) -> bool:
        async with self._sessions_lock:
            removed = self._sessions.pop(id(session), None) is not None
            n = len(self._sessions)
        if removed:
            set_gauge("sessions", n)
            log_event(_log, "session_removed", sessions=n)
        return removed

    async def broadcast(self, text: str) -> int:
        """Send ``text`` to every session; returns how many writes succeeded."""
        delivered = 0
        async with self._sessions_lock:
            for key, session in list(self._sessions.items()):
                try:
                    await session.send_text(text)
                except Exception as e:
                    del self._sessions[key]
                    inc_counter("broadcast_write_failures")
                    log_event(
                        _log,
                        "broadcast_write_failed",
                        level=logging.WARNING,
                        error=f"{type(e).__name__}: {e}",
                        sessions=len(self._sessions),
                    )
                    await _close_session(session)
                    continue
                delivered += 1
            set_gauge("sessions", len(self._sessions))
        inc_counter("events_broadcast")
        return delivered

    # -------------------------
    # WSJT-X -> browsers
    # -------------------------

    async def handle_datagram(self, data: bytes, addr: Any) -> bool:
        """Handle one inbound datagram. Returns True if it was decoded and broadcast."""
        peer = addr if isinstance(addr, PeerAddr) else PeerAddr.from_sockaddr(addr)
        self._peer.set(peer)
        inc_counter("datagrams_received")

        try:
            msg = decode_message(data)
            text = dumps_envelope(msg)
        except WireError as e:
            inc_counter("datagrams_dropped")
            log_event(
                _log,
                "datagram_dropped",
                level=logging.DEBUG,
                peer=str(peer),
                code=e.code,
                error=str(e),
                size=len(data),
            )
            return False

        if isinstance(msg, Decode):
            log_event(
                _log,
                "decode",
                level=logging.DEBUG,
                mode=msg.mode,
                message=msg.message,
                snr=msg.snr,
                time=msg.time,
            )

        await self.broadcast(text)
        return True

    # -------------------------
    # browsers -> WSJT-X
    # -------------------------

    def build_command(self, raw: str | bytes) -> WireMessage:
        """Turn a browser command envelope into an outbound message stamped with the bridge id."""
        try:
            env = CommandEnvelope.model_validate_json(raw)
        except ValidationError as e:
            raise CommandParseError(f"invalid command envelope ({e.error_count()} errors)") from e

        model = COMMAND_MODELS.get(env.type)
        if model is None:
            raise UnsupportedTypeError(f"unknown command type: {env.type!r}")

        # "data": null means all zero values; a missing key is malformed
        if "data" not in env.model_fields_set:
            raise CommandParseError(f"{env.type} command has no data")
        data = {} if env.data is None else env.data
        if not isinstance(data, dict):
            raise CommandParseError(f"{env.type} data must be an object")
        try:
            cmd = model.model_validate(data)
        except ValidationError as e:
            raise CommandParseError(f"invalid {env.type} data ({e.error_count()} errors)") from e

        return cmd.to_message(self.bridge_id)

    def send_message(self, msg: WireMessage) -> int:
        peer = self._peer.get()
        if peer is None:
            raise NoPeerError("no WSJT-X instance seen yet, cannot send command")

        sender = self._sender
        if sender is None:
            raise NotBoundError("udp endpoint is not bound")

        payload = encode_message(msg)
        try:
            sender.sendto(payload, peer.as_tuple())
        except OSError as e:
            raise SendFailed(f"udp send to {peer} failed: {e}") from e

        inc_counter("commands_sent")
        log_event(_log, "command_sent", type=int(msg_type_of(msg)), peer=str(peer), size=len(payload))
        return len(payload)

    def handle_command(self, raw: str | bytes) -> int:
        """Handle one browser command. Returns bytes sent; 0 when the command was dropped."""
        try:
            return self.send_message(self.build_command(raw))
        except (RouterError, WireError) as e:
            inc_counter("commands_dropped")
            log_event(_log, "command_dropped", level=logging.WARNING, code=e.code, error=str(e))
            return 0


async def _close_session(session: Session) -> None:
    close = getattr(session, "close", None)
    if not callable(close):
        return
    try:
        await close()
    except Exception as e:
        log_event(_log, "session_close_failed", level=logging.DEBUG, error=f"{type(e).__name__}: {e}")
