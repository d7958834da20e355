"""
LocalMarket Backend: Real-time Notification Hub
================================================

What:  Fans notification events out to every connected WebSocket listener.
How:   Keeps the open sockets of this process in a set; `broadcast` sends the
       event to each of them in turn.

Delivery model (best effort):
    - No acknowledgement, retry, ordering guarantee, or replay.
    - A listener that is disconnected when an event is sent misses it; the
      notification itself is still stored and can be listed over HTTP.
    - A socket whose send fails is dropped from the set.
    - Listeners connected to other worker processes are not reached.
"""

import logging
from typing import Any, Dict, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


class NotificationHub:
    def __init__(self) -> None:
        self._listeners: Set[WebSocket] = set()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._listeners.add(websocket)
        logger.info("Notification listener connected (%d total)", self.listener_count)

    def disconnect(self, websocket: WebSocket) -> None:
        self._listeners.discard(websocket)

    async def broadcast(self, event: str, data: Dict[str, Any]) -> int:
        """
        Sends `{"event": ..., "data": ...}` to every listener.

        Returns:
            Number of listeners the message was handed to.
        """
        message = jsonable_encoder({"event": event, "data": data})
        delivered = 0
        for websocket in list(self._listeners):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.info("Dropping notification listener after failed send: %s", type(e).__name__)
                self.disconnect(websocket)
        return delivered
