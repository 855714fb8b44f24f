# backend/modules/kds/services/__init__.py

"""
Kitchen Display System services.
"""

from .kds_service import KDSService
from .kds_websocket_manager import KDSWebSocketManager, kds_websocket_manager
from .kds_notifier import RealtimeNotifier
from .kds_queue_service import KitchenQueueService
from .kds_timing_service import OrderTimingCalculator
from .order_state_machine import OrderStateMachine, TransitionResult
from .station_routing_service import StationClassifier
from .ticket_printer import TicketPrinter
from .kitchen_workflow_service import KitchenWorkflowService

__all__ = [
    "KDSService",
    "KDSWebSocketManager",
    "kds_websocket_manager",
    "RealtimeNotifier",
    "KitchenQueueService",
    "OrderTimingCalculator",
    "OrderStateMachine",
    "TransitionResult",
    "StationClassifier",
    "TicketPrinter",
    "KitchenWorkflowService",
]
