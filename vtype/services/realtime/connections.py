"""
Live websocket bookkeeping and best-effort delivery.
"""

from typing import Any, Dict, Iterable, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

from vtype.core.logging import logger
from vtype.services.realtime.protocol import OutgoingEvent


class ConnectionManager:
    def __init__(self):
        self._sockets: Dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        self._sockets[connection_id] = websocket

    def unregister(self, connection_id: str) -> Optional[WebSocket]:
        return self._sockets.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[WebSocket]:
        return self._sockets.get(connection_id)

    def __len__(self) -> int:
        return len(self._sockets)

    async def send(self, connection_id: str, frame: Dict[str, Any]) -> bool:
        """Send one frame; False when the connection is gone or the send failed."""
        websocket = self._sockets.get(connection_id)
        if websocket is None or websocket.application_state != WebSocketState.CONNECTED:
            return False
        try:
            await websocket.send_json(frame)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning(
                "Dropped frame for unreachable connection",
                extra={"connection_id": connection_id, "event": frame.get("event"), "error": str(e)}
            )
            return False

    async def deliver(self, events: Iterable[OutgoingEvent]) -> int:
        """
        Deliver every event to each of its targets in order.

        Delivery is fire-and-forget: nothing is queued for connections that
        are gone. Returns the number of frames actually sent.
        """
        sent = 0
        for event in events:
            frame = event.to_frame()
            for connection_id in event.targets:
                if await self.send(connection_id, frame):
                    sent += 1
        return sent
