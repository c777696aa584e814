from __future__ import annotations

from fastapi import APIRouter, WebSocket

from wsjtx_bridge.net.router import BridgeRouter

router = APIRouter()


@router.websocket("/ws")
async def bridge_socket(websocket: WebSocket) -> None:
    """Browser session.

    Server -> client: {"type": "<decimal tag>", "data": {...}} for every decoded datagram.
    Client -> server: {"type": "reply" | "halt", "data": {...}}. Bad commands are dropped
    server-side; nothing is sent back.
    """
    bridge: BridgeRouter = websocket.app.state.router

    await websocket.accept()
    await bridge.add_session(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            bridge.handle_command(raw)
    finally:
        await bridge.remove_session(websocket)
