# backend/modules/kds/services/kds_notifier.py

"""
Publishes committed order transitions to subscribed kitchen displays.

Publishing never blocks or fails the caller: events are handed to a
background task and any channel error is logged and dropped.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from core.config import get_settings
from .kds_websocket_manager import (
    kds_websocket_manager,
    kitchen_topic,
    order_topic,
    station_topic,
)
from .order_state_machine import TransitionResult

logger = logging.getLogger(__name__)

ORDER_STATUS_UPDATE = "order-status-update"
STATION_ORDER_UPDATE = "station-order-update"
STATION_UPDATE = "station-update"


class BroadcastChannel(Protocol):
    async def publish(self, topic: str, event_type: str, payload: Dict[str, Any]) -> Any:
        ...


class RealtimeNotifier:
    def __init__(
        self,
        channel: Optional[BroadcastChannel] = None,
        default_kitchen_id: Optional[int] = None,
    ):
        self.channel = channel or kds_websocket_manager
        self.default_kitchen_id = (
            default_kitchen_id or get_settings().kds_default_kitchen_id
        )
        self._pending: Set[asyncio.Task] = set()

    def order_transition(self, result: TransitionResult) -> None:
        """Fan a transition out to the order, kitchen and (if named) station topics"""
        kitchen_id = result.kitchen_id or self.default_kitchen_id
        payload = {
            "order_id": result.order_id,
            "status": result.new_status.value,
            "previous_status": result.previous_status.value,
            "action": result.action.value,
            "station_id": result.station,
            "kitchen_id": kitchen_id,
            "actor_id": result.actor_id,
            "timestamp": datetime.utcnow().isoformat(),
        }

        events = [
            (order_topic(result.order_id), ORDER_STATUS_UPDATE, payload),
            (kitchen_topic(kitchen_id), ORDER_STATUS_UPDATE, payload),
        ]
        if result.station:
            events.append(
                (station_topic(result.station), STATION_ORDER_UPDATE, payload)
            )
        self._schedule(events)

    def station_updated(self, station_id: str, data: Dict[str, Any]) -> None:
        self._schedule([(station_topic(station_id), STATION_UPDATE, data)])

    def _schedule(self, events: List[Tuple[str, str, Dict[str, Any]]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"No running event loop, dropping {len(events)} realtime event(s)"
            )
            return

        task = loop.create_task(self._send(events))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, events: List[Tuple[str, str, Dict[str, Any]]]) -> None:
        # One task per transition keeps per-topic order within it
        for topic, event_type, payload in events:
            try:
                await self.channel.publish(topic, event_type, payload)
            except Exception as e:
                logger.error(f"Failed to publish {event_type} to {topic}: {str(e)}")

    async def drain(self) -> None:
        """Wait for every scheduled publish to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
