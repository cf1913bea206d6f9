"""Broadcasts load progress and tool status to connected viewers."""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class ProgressManager:
    """Keeps the open /ws/progress sockets and fans messages out to them.

    The engine itself reports nothing while it runs; routers announce a
    step before handing it to the service and report the outcome after.
    """

    def __init__(self):
        self.clients: List[WebSocket] = []

    def add_client(self, websocket: WebSocket):
        self.clients.append(websocket)
        logger.debug("Progress client connected (%d open)", len(self.clients))

    def remove_client(self, websocket: WebSocket):
        if websocket in self.clients:
            self.clients.remove(websocket)

    async def broadcast(self, message: Dict[str, Any]):
        """Send ``message`` to every client, dropping sockets that fail."""
        payload = json.dumps(message)
        disconnected = []

        for client in self.clients:
            try:
                await client.send_text(payload)
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
                logger.info("Dropping progress client: %s", e)
                disconnected.append(client)

        for client in disconnected:
            self.remove_client(client)

    async def send_busy(self, step: str, message: str):
        """Announce a blocking engine call (parsing, full scans)."""
        await self.broadcast({"type": "busy", "step": step, "message": message})

    async def send_status(self, step: str, message: str, level: str = "info"):
        """Status line for the viewer, e.g. empty selections."""
        await self.broadcast({"type": "status", "step": step, "level": level, "message": message})

    async def send_complete(self, step: str, result: Optional[Any] = None):
        await self.broadcast({"type": "complete", "step": step, "result": result})

    async def send_error(self, step: str, error: str):
        await self.broadcast({"type": "error", "step": step, "error": error})


# Global instance
_progress_manager: Optional[ProgressManager] = None


def get_progress_manager() -> ProgressManager:
    """Get the global progress manager instance."""
    global _progress_manager
    if _progress_manager is None:
        _progress_manager = ProgressManager()
    return _progress_manager
