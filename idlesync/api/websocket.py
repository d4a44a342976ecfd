"""
Live event feed over WebSocket.

Every notification the role controller emits is validated into a
``FeedFrame`` and pushed, in emission order, to every subscriber as
``{"event": ..., "data": ...}``. Subscribers that stop accepting frames are
dropped on the next push.
"""

import asyncio
import logging
from typing import Any, Literal

from fastapi import WebSocket
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

FeedEvent = Literal[
    "report_received",
    "report_sent",
    "wake",
    "peer_added",
    "peer_rejected",
]


class FeedFrame(BaseModel):
    """One controller notification as sent to feed subscribers."""
    event: FeedEvent
    data: dict[str, Any]


class EventFeed:
    """Fans controller notifications out to WebSocket subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[WebSocket] = []
        # Held across a whole push so frames leave in emission order
        self._send_lock = asyncio.Lock()

    async def subscribe(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._subscribers.append(websocket)
        logger.debug(f"Feed subscriber joined ({len(self._subscribers)} total)")

    def unsubscribe(self, websocket: WebSocket) -> None:
        if websocket in self._subscribers:
            self._subscribers.remove(websocket)
            logger.debug(f"Feed subscriber left ({len(self._subscribers)} total)")

    async def publish(self, event_type: str, data: dict) -> None:
        """Controller listener: ``RoleController.on_event(feed.publish)``."""
        try:
            frame = FeedFrame(event=event_type, data=data)
        except ValidationError:
            logger.warning(f"Not publishing unknown event {event_type!r}")
            return

        message = frame.model_dump_json()
        async with self._send_lock:
            for ws in list(self._subscribers):
                try:
                    await ws.send_text(message)
                except Exception as e:
                    logger.debug(f"Dropping feed subscriber: {e}")
                    self.unsubscribe(ws)
