# backend/modules/kds/services/kds_timing_service.py

"""
Order priority and completion estimates.

Both values depend on the wall clock and are recomputed on every read;
nothing here is persisted or cached.
"""

from datetime import datetime, timedelta
from typing import Optional

from core.config import Settings, get_settings
from modules.orders.enums.order_enums import OrderPriority
from modules.orders.models.order_models import Order

# Fixed per-line preparation increment in minutes
PER_ITEM_PREP_MINUTES = 2

# (minutes elapsed strictly greater than, tier), checked top down
PRIORITY_THRESHOLDS = (
    (30, OrderPriority.URGENT),
    (20, OrderPriority.HIGH),
    (10, OrderPriority.MEDIUM),
)


def minutes_elapsed(ordered_at: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.utcnow()
    return (now - ordered_at).total_seconds() / 60


def priority_for_elapsed(elapsed_minutes: float) -> OrderPriority:
    for threshold, tier in PRIORITY_THRESHOLDS:
        if elapsed_minutes > threshold:
            return tier
    return OrderPriority.LOW


class OrderTimingCalculator:
    """Computes priority tier and ETA for orders"""

    def __init__(self, base_prep_minutes: int = 20):
        self.base_prep_minutes = base_prep_minutes

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "OrderTimingCalculator":
        settings = settings or get_settings()
        return cls(base_prep_minutes=settings.kds_base_prep_minutes)

    def priority(self, order: Order, now: Optional[datetime] = None) -> OrderPriority:
        return priority_for_elapsed(minutes_elapsed(order.ordered_at, now))

    def preparation_minutes(self, item_count: int) -> int:
        return self.base_prep_minutes + PER_ITEM_PREP_MINUTES * item_count

    def eta(self, order: Order, item_count: Optional[int] = None) -> datetime:
        """
        Estimated completion: ordered_at + base prep + 2 minutes per item.

        ``item_count`` defaults to the order's live (not removed) lines.
        """
        if item_count is None:
            item_count = len(order.live_items)
        return order.ordered_at + timedelta(
            minutes=self.preparation_minutes(item_count)
        )
