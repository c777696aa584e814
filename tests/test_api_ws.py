from __future__ import annotations

import json
import time

from fastapi.testclient import TestClient

from wsjtx_bridge import metrics
from wsjtx_bridge.api.app import create_app
from wsjtx_bridge.api.config import load_bridge_config
from wsjtx_bridge.net.router import BridgeRouter
from wsjtx_bridge.net.transport_memory import InMemorySender
from wsjtx_bridge.testing.frames import decode_frame_bytes, status_frame

WSJTX = ("192.0.2.10", 51234)


def _wait_until(pred, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not pred():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


def _app(router: BridgeRouter, monkeypatch):
    monkeypatch.setenv("WSJTX_BRIDGE_STATIC_DIR", "/nonexistent-ui-dir")
    return create_app(cfg=load_bridge_config(), router=router, start_udp=False)


def test_decode_datagram_reaches_browser(monkeypatch) -> None:
    router = BridgeRouter()
    app = _app(router, monkeypatch)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            _wait_until(lambda: router.session_count == 1)

            client.portal.call(
                router.handle_datagram,
                decode_frame_bytes(mode="FT8", message="CQ TEST K1ABC", snr=-10, time_ms=43_200_000),
                WSJTX,
            )
            env = ws.receive_json()
            assert env["type"] == "2"
            assert env["data"]["Mode"] == "FT8"
            assert env["data"]["Message"] == "CQ TEST K1ABC"
            assert env["data"]["SNR"] == -10
            assert env["data"]["Time"] == 43_200_000

            client.portal.call(router.handle_datagram, status_frame(dial_frequency=7_074_000), WSJTX)
            env = ws.receive_json()
            assert env["type"] == "1"
            assert env["data"]["DialFrequency"] == 7_074_000

        _wait_until(lambda: router.session_count == 0)


def test_every_connected_browser_gets_the_event(monkeypatch) -> None:
    router = BridgeRouter()
    app = _app(router, monkeypatch)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
            _wait_until(lambda: router.session_count == 2)
            client.portal.call(router.handle_datagram, decode_frame_bytes(), WSJTX)
            assert ws1.receive_json() == ws2.receive_json()


def test_browser_command_is_sent_to_peer(monkeypatch) -> None:
    sender = InMemorySender()
    router = BridgeRouter(sender=sender)
    app = _app(router, monkeypatch)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            _wait_until(lambda: router.session_count == 1)
            client.portal.call(router.handle_datagram, decode_frame_bytes(), WSJTX)
            ws.receive_json()

            ws.send_text(json.dumps({"type": "halt", "data": {"AutoTxOnly": True}}))
            _wait_until(lambda: len(sender.sent) == 1)
            assert sender.sent[0].addr == WSJTX
            assert sender.sent[0].payload.endswith(b"WSJTX-WEB\x01")

            # binary frames carry the same JSON
            ws.send_bytes(json.dumps({"type": "reply", "data": {"Message": "K1ABC N0CALL R-10"}}).encode())
            _wait_until(lambda: len(sender.sent) == 2)


def test_command_before_peer_and_garbage_are_dropped_quietly(monkeypatch) -> None:
    sender = InMemorySender()
    router = BridgeRouter(sender=sender)
    app = _app(router, monkeypatch)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "halt", "data": {}}))
            ws.send_text("{not json")
            ws.send_text(json.dumps({"type": "setAudioDevice", "data": {"id": "1"}}))
            _wait_until(lambda: metrics.get_counter("commands_dropped") == 3)
            assert sender.sent == []

            # the session is still alive after the bad input
            _wait_until(lambda: router.session_count == 1)
            client.portal.call(router.handle_datagram, decode_frame_bytes(), WSJTX)
            assert ws.receive_json()["type"] == "2"
