# backend/modules/kds/schemas/__init__.py

"""
Kitchen Display System schemas.
"""

from .kds_schemas import (
    StatsPeriod,
    StaffActionRequest,
    StartOrderRequest,
    CompleteOrderRequest,
    PauseOrderRequest,
    AssignStationRequest,
    StationStaffUpdate,
    OrderItemView,
    QueueOrder,
    AuditEventView,
    OrderDetail,
    QueueView,
    TransitionResponse,
    StationView,
    StationStats,
    KitchenStats,
)

__all__ = [
    "StatsPeriod",
    "StaffActionRequest",
    "StartOrderRequest",
    "CompleteOrderRequest",
    "PauseOrderRequest",
    "AssignStationRequest",
    "StationStaffUpdate",
    "OrderItemView",
    "QueueOrder",
    "AuditEventView",
    "OrderDetail",
    "QueueView",
    "TransitionResponse",
    "StationView",
    "StationStats",
    "KitchenStats",
]
