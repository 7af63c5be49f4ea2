"""WebSocket handler for real-time pipeline progress."""
import asyncio
import json
import logging
from typing import Set, Dict
from fastapi import WebSocket, WebSocketDisconnect
import redis.asyncio as redis
from shared.config import settings

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections for pipeline progress."""

    def __init__(self):
        # Map of source item external id to set of WebSocket connections
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # Unfiltered connections
        self.all_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket, external_id: str = None):
        """Accept a new WebSocket connection."""
        await websocket.accept()

        if external_id:
            self.active_connections.setdefault(external_id, set()).add(websocket)
        else:
            self.all_connections.add(websocket)

    def disconnect(self, websocket: WebSocket, external_id: str = None):
        """Remove a WebSocket connection."""
        self.all_connections.discard(websocket)

        if external_id and external_id in self.active_connections:
            self.active_connections[external_id].discard(websocket)
            if not self.active_connections[external_id]:
                del self.active_connections[external_id]

    async def send_to_item(self, external_id: str, message: dict):
        """Send message to all connections watching a specific source item."""
        connections = self.active_connections.get(external_id)
        if not connections:
            return

        disconnected = set()
        for connection in list(connections):
            try:
                await connection.send_json(message)
            except Exception:
                disconnected.add(connection)

        # Clean up disconnected clients
        for conn in disconnected:
            self.disconnect(conn, external_id)

    async def broadcast(self, message: dict):
        """Send message to all unfiltered clients."""
        disconnected = set()
        for connection in list(self.all_connections):
            try:
                await connection.send_json(message)
            except Exception:
                disconnected.add(connection)

        # Clean up disconnected clients
        for conn in disconnected:
            self.all_connections.discard(conn)

    async def dispatch(self, data: dict):
        """Route one progress event to its item watchers and to everyone."""
        external_id = data.get("external_id")
        if external_id:
            await self.send_to_item(external_id, data)
        await self.broadcast(data)


# Global connection manager
manager = ConnectionManager()


async def redis_subscriber(redis_client: redis.Redis):
    """Subscribe to the progress channel and forward events to WebSocket clients."""
    pubsub = redis_client.pubsub()
    await pubsub.subscribe(settings.redis_progress_channel)

    try:
        async for message in pubsub.listen():
            if message["type"] == "message":
                try:
                    await manager.dispatch(json.loads(message["data"]))
                except json.JSONDecodeError:
                    logger.warning(f"Dropping malformed progress event: {message['data']}")
    except asyncio.CancelledError:
        pass
    finally:
        await pubsub.unsubscribe(settings.redis_progress_channel)
        await pubsub.aclose()


async def websocket_endpoint(websocket: WebSocket, external_id: str = None):
    """WebSocket endpoint for pipeline progress."""
    await manager.connect(websocket, external_id)

    try:
        while True:
            # Keep connection alive with heartbeat
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=settings.ws_heartbeat_interval
                )
                # Handle ping/pong
                if data == "ping":
                    await websocket.send_text("pong")
            except asyncio.TimeoutError:
                # Send heartbeat
                await websocket.send_json({"type": "heartbeat"})
    except WebSocketDisconnect:
        manager.disconnect(websocket, external_id)
