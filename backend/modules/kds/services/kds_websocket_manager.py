# backend/modules/kds/services/kds_websocket_manager.py

"""
WebSocket manager for real-time KDS updates.

Display clients subscribe to topics such as ``order-12``, ``station-grill``
or ``kitchen-1``. Delivery is at-most-once; a client that fails a send is
dropped from the topic.
"""

from fastapi import WebSocket
from typing import Any, Dict, List
import json
import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def order_topic(order_id: int) -> str:
    return f"order-{order_id}"


def station_topic(station_id: str) -> str:
    return f"station-{station_id}"


def kitchen_topic(kitchen_id: int) -> str:
    return f"kitchen-{kitchen_id}"


class KDSWebSocketManager:
    """Manages WebSocket subscriptions per topic"""

    def __init__(self):
        # Topic name to subscribed connections
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self.lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, topic: str):
        """Accept a WebSocket and subscribe it to a topic"""
        await websocket.accept()

        async with self.lock:
            self.active_connections.setdefault(topic, []).append(websocket)

        logger.info(
            f"WebSocket subscribed to {topic}. "
            f"Total connections: {self.get_connection_count(topic)}"
        )

    def disconnect(self, websocket: WebSocket, topic: str):
        try:
            if topic in self.active_connections:
                self.active_connections[topic].remove(websocket)
                if not self.active_connections[topic]:
                    del self.active_connections[topic]

            logger.info(f"WebSocket unsubscribed from {topic}")
        except ValueError:
            logger.warning(f"WebSocket not found in active connections for {topic}")

    async def publish(self, topic: str, event_type: str, payload: Dict[str, Any]) -> int:
        """
        Send an event to every subscriber of ``topic``.

        Returns the number of connections the event was written to. A topic
        with no subscribers is not an error.
        """
        connections = list(self.active_connections.get(topic, []))
        if not connections:
            return 0

        message_text = json.dumps(
            {
                "type": event_type,
                "topic": topic,
                "data": payload,
                "timestamp": datetime.utcnow().isoformat(),
            },
            default=str,
        )

        delivered = 0
        dead_connections = []
        for websocket in connections:
            try:
                await websocket.send_text(message_text)
                delivered += 1
            except Exception as e:
                logger.error(f"Error broadcasting to {topic}: {str(e)}")
                dead_connections.append(websocket)

        for websocket in dead_connections:
            self.disconnect(websocket, topic)

        return delivered

    def get_connection_count(self, topic: str) -> int:
        return len(self.active_connections.get(topic, []))

    def get_all_connection_counts(self) -> Dict[str, int]:
        return {
            topic: len(connections)
            for topic, connections in self.active_connections.items()
        }

    async def close_all_connections(self):
        """Close all WebSocket connections"""
        tasks = [
            websocket.close()
            for connections in self.active_connections.values()
            for websocket in connections
        ]

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self.active_connections.clear()
        logger.info("All WebSocket connections closed")


# Global instance
kds_websocket_manager = KDSWebSocketManager()
