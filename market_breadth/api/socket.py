from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, WebSocket

log = logging.getLogger("socket")

router = APIRouter()


@router.websocket("/socket")
async def socket_endpoint(websocket: WebSocket):
    """
    Realtime socket.

    Accepts connections and logs connect/disconnect. Nothing is pushed;
    inbound messages are read and ignored.
    """
    await websocket.accept()
    client_id = uuid.uuid4().hex[:12]
    log.info("New client connected: %s", client_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                log.info("Client disconnected (%s): code=%s", client_id, message.get("code"))
                return
            log.debug("Ignoring message from %s", client_id)
    except Exception:
        log.exception("Socket error (%s)", client_id)
        raise
