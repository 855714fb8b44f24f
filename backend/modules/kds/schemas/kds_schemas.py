# backend/modules/kds/schemas/kds_schemas.py

"""
Pydantic schemas for Kitchen Display System.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from modules.orders.enums.order_enums import OrderAction, OrderPriority, OrderStatus


class StatsPeriod(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# ========== Requests ==========


class StaffActionRequest(BaseModel):
    """Body for transitions that only need the acting staff member"""

    staff_id: int = Field(..., gt=0)


class StartOrderRequest(StaffActionRequest):
    station_id: Optional[str] = None


class CompleteOrderRequest(StaffActionRequest):
    notes: Optional[str] = Field(None, max_length=500)
    station_id: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class PauseOrderRequest(StaffActionRequest):
    comment: Optional[str] = Field(None, max_length=500)


class AssignStationRequest(StaffActionRequest):
    station_id: str = Field(..., min_length=1, max_length=50)


class StationStaffUpdate(BaseModel):
    """Assign staff to a station; ``None`` clears the assignment"""

    staff_id: Optional[int] = Field(None, gt=0)


# ========== Order views ==========


class OrderItemView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    category_name: str
    product_kind: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    comment: Optional[str] = None
    stations: List[str] = Field(default_factory=list)


class QueueOrder(BaseModel):
    """An order as shown on a kitchen display, with computed fields"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    table_id: Optional[int] = None
    customer_id: Optional[int] = None
    kitchen_id: int
    status: OrderStatus
    comments: Optional[str] = None
    assigned_station: Optional[str] = None
    ordered_at: datetime
    priority: OrderPriority
    eta: datetime
    preparation_minutes: int
    minutes_elapsed: int
    stations: List[str] = Field(default_factory=list)
    item_count: int
    items: List[OrderItemView] = Field(default_factory=list)


class AuditEventView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: str
    previous_status: Optional[str] = None
    new_status: str
    actor_id: Optional[int] = None
    station: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class OrderDetail(QueueOrder):
    turn_id: Optional[int] = None
    total_amount: Optional[Decimal] = None
    paused_from: Optional[str] = None
    modified_by_id: Optional[int] = None
    primary_station: Optional[str] = None
    updated_at: Optional[datetime] = None
    history: List[AuditEventView] = Field(default_factory=list)


class QueueView(BaseModel):
    station: Optional[str] = None
    status: Optional[OrderStatus] = None
    kitchen_id: Optional[int] = None
    pending: List[QueueOrder] = Field(default_factory=list)
    in_progress: List[QueueOrder] = Field(default_factory=list)
    ready: List[QueueOrder] = Field(default_factory=list)
    total_orders: int = 0
    estimated_wait_minutes: int = 0
    last_updated: datetime


class TransitionResponse(BaseModel):
    """Result of a state machine operation"""

    action: OrderAction
    previous_status: OrderStatus
    new_status: OrderStatus
    actor_id: Optional[int] = None
    station: Optional[str] = None
    table_released: bool = False
    order: OrderDetail


# ========== Stations & stats ==========


class StationView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    description: Optional[str] = None
    priority: int = 0
    capacity: int
    is_active: bool = True
    current_staff_id: Optional[int] = None
    staff_assigned_at: Optional[datetime] = None
    pending_orders: int = 0
    in_progress_orders: int = 0
    load_percentage: float = 0.0


class StationStats(BaseModel):
    station_id: str
    display_name: str
    total_orders: int
    completed_orders: int
    efficiency_rate: float


class KitchenStats(BaseModel):
    period: StatsPeriod
    since: datetime
    until: datetime
    total_orders: int
    completed_orders: int
    pending_orders: int
    cancelled_orders: int
    completion_rate: float
    cancellation_rate: float
    stations: List[StationStats] = Field(default_factory=list)
    generated_at: datetime
