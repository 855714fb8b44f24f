# backend/modules/kds/__init__.py

"""
Kitchen Display System (KDS) module: order lifecycle, station routing and
real-time kitchen queues.
"""

from .models import *
from .schemas import *
from .services import *

__all__ = [
    # Models
    "KitchenStation",
    # Services
    "KDSService",
    "KitchenWorkflowService",
    "OrderStateMachine",
    "KitchenQueueService",
    "StationClassifier",
    "OrderTimingCalculator",
    "RealtimeNotifier",
    "TicketPrinter",
    # Schemas
    "QueueView",
    "OrderDetail",
    "TransitionResponse",
    "StationView",
    "KitchenStats",
]
