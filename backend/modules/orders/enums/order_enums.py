from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# Statuses shown on kitchen displays, in bucket order
KITCHEN_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PROGRESS, OrderStatus.READY)


class ProductKind(str, Enum):
    DISH = "dish"
    BEVERAGE = "beverage"


class OrderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class OrderAction(str, Enum):
    """Operations recorded in the order audit trail"""
    START = "start"
    COMPLETE = "complete"
    PAUSE = "pause"
    RESUME = "resume"
    CANCEL = "cancel"
    DELIVER = "deliver"
    REFUND = "refund"
    ASSIGN_STATION = "assign_station"
    REMOVE_ITEM = "remove_item"
