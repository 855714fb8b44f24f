# backend/modules/kds/services/order_state_machine.py

"""
Order lifecycle state machine.

Every transition is read, validated against the transition table, then
written with a conditional update on the status that was read. A caller
that loses a race gets InvalidTransitionError, never a silent overwrite.

    pending -> in_progress -> ready -> delivered -> refunded
    pending | in_progress -> paused -> (back to where it was paused from)
    pending | in_progress -> cancelled
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from core.config import Settings, get_settings
from core.exceptions import InvalidTransitionError, RefundWindowExceededError
from modules.orders.enums.order_enums import OrderAction, OrderStatus
from modules.orders.models.order_models import Order
from modules.orders.services.order_store import OrderStore
from modules.tables.services.table_service import TableService

logger = logging.getLogger(__name__)


# action -> (allowed source statuses, target status)
# Resume has no fixed target: it returns to the status recorded on pause.
TRANSITIONS: Dict[OrderAction, Tuple[FrozenSet[OrderStatus], Optional[OrderStatus]]] = {
    OrderAction.START: (frozenset({OrderStatus.PENDING}), OrderStatus.IN_PROGRESS),
    OrderAction.COMPLETE: (frozenset({OrderStatus.IN_PROGRESS}), OrderStatus.READY),
    OrderAction.PAUSE: (
        frozenset({OrderStatus.PENDING, OrderStatus.IN_PROGRESS}),
        OrderStatus.PAUSED,
    ),
    OrderAction.RESUME: (frozenset({OrderStatus.PAUSED}), None),
    OrderAction.CANCEL: (
        frozenset({OrderStatus.PENDING, OrderStatus.IN_PROGRESS}),
        OrderStatus.CANCELLED,
    ),
    OrderAction.DELIVER: (frozenset({OrderStatus.READY}), OrderStatus.DELIVERED),
    OrderAction.REFUND: (frozenset({OrderStatus.DELIVERED}), OrderStatus.REFUNDED),
    OrderAction.ASSIGN_STATION: (
        frozenset({OrderStatus.PENDING, OrderStatus.IN_PROGRESS}),
        OrderStatus.IN_PROGRESS,
    ),
    OrderAction.REMOVE_ITEM: (frozenset({OrderStatus.PENDING}), OrderStatus.PENDING),
}

RESUMABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.IN_PROGRESS})

# Actions after which the order's table goes back to "available"
TABLE_RELEASING_ACTIONS = frozenset({OrderAction.CANCEL, OrderAction.DELIVER})


@dataclass
class TransitionResult:
    """Outcome of one committed transition"""

    order: Order
    order_id: int
    kitchen_id: Optional[int]
    action: OrderAction
    previous_status: OrderStatus
    new_status: OrderStatus
    actor_id: Optional[int]
    station: Optional[str] = None
    notes: Optional[str] = None
    table_released: bool = False
    # Value returned by the snapshot hook before the commit
    snapshot: Any = None


def append_station_notes(
    existing: Optional[str], notes: str, station: Optional[str]
) -> str:
    """Append notes under a station tag; earlier comments are kept."""
    prefix = f"Station {station}" if station else "Kitchen Notes"
    return f"{existing or ''}\n{prefix}: {notes}".strip()


class OrderStateMachine:
    def __init__(
        self,
        store: OrderStore,
        tables: TableService,
        settings: Optional[Settings] = None,
        snapshot: Optional[Callable[[Order], Any]] = None,
    ):
        """
        ``snapshot`` is called with the reloaded order inside the
        transition's transaction, so the caller can build its response
        without reading the database after the commit.
        """
        self.store = store
        self.tables = tables
        self.settings = settings or get_settings()
        self.snapshot = snapshot

    def check(self, order: Order, action: OrderAction) -> OrderStatus:
        """Return the order's status or raise if ``action`` is not allowed from it"""
        current = OrderStatus(order.status)
        sources, target = TRANSITIONS[action]
        if current not in sources:
            raise InvalidTransitionError(
                order_id=order.id,
                current_state=current.value,
                attempted=action.value,
                target_state=target.value if target else None,
            )
        return current

    # Transitions
    def start(
        self, order_id: int, staff_id: Optional[int], station: Optional[str] = None
    ) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.START)

        fields = {"assigned_station": station} if station else {}
        result = self._apply(
            order, OrderAction.START, OrderStatus.IN_PROGRESS, staff_id,
            fields=fields, station=station or order.assigned_station,
        )
        logger.info(f"Order {order_id} started by staff {staff_id}")
        return result

    def complete(
        self,
        order_id: int,
        staff_id: Optional[int],
        notes: Optional[str] = None,
        station: Optional[str] = None,
    ) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.COMPLETE)

        station = station or order.assigned_station
        fields: Dict[str, Any] = {}
        if notes:
            fields["comments"] = append_station_notes(order.comments, notes, station)

        result = self._apply(
            order, OrderAction.COMPLETE, OrderStatus.READY, staff_id,
            fields=fields, station=station, notes=notes,
        )
        logger.info(f"Order {order_id} completed by staff {staff_id}")
        return result

    def pause(
        self,
        order_id: int,
        staff_id: Optional[int],
        comment: Optional[str] = None,
    ) -> TransitionResult:
        order = self.store.find_order(order_id)
        current = self.check(order, OrderAction.PAUSE)

        fields: Dict[str, Any] = {"paused_from": current.value}
        if comment is not None:
            fields["comments"] = comment

        result = self._apply(
            order, OrderAction.PAUSE, OrderStatus.PAUSED, staff_id,
            fields=fields, station=order.assigned_station, notes=comment,
        )
        logger.info(f"Order {order_id} paused by staff {staff_id}")
        return result

    def resume(self, order_id: int, staff_id: Optional[int]) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.RESUME)

        target = OrderStatus.PENDING
        if order.paused_from in {status.value for status in RESUMABLE_STATUSES}:
            target = OrderStatus(order.paused_from)

        result = self._apply(
            order, OrderAction.RESUME, target, staff_id,
            fields={"paused_from": None}, station=order.assigned_station,
        )
        logger.info(f"Order {order_id} resumed to {target.value} by staff {staff_id}")
        return result

    def cancel(self, order_id: int, staff_id: Optional[int]) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.CANCEL)

        result = self._apply(
            order, OrderAction.CANCEL, OrderStatus.CANCELLED, staff_id,
            station=order.assigned_station,
        )
        logger.info(f"Order {order_id} cancelled by staff {staff_id}")
        return result

    def deliver(self, order_id: int, staff_id: Optional[int]) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.DELIVER)

        result = self._apply(
            order, OrderAction.DELIVER, OrderStatus.DELIVERED, staff_id,
            station=order.assigned_station,
        )
        logger.info(f"Order {order_id} delivered by staff {staff_id}")
        return result

    def refund(
        self,
        order_id: int,
        staff_id: Optional[int],
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.REFUND)

        now = now or datetime.utcnow()
        days_elapsed = (now - order.ordered_at).total_seconds() / 86400
        window = self.settings.kds_refund_window_days
        if days_elapsed > window:
            raise RefundWindowExceededError(order_id, window, days_elapsed)

        result = self._apply(
            order, OrderAction.REFUND, OrderStatus.REFUNDED, staff_id
        )
        logger.info(f"Order {order_id} refunded by staff {staff_id}")
        return result

    def assign_station(
        self, order_id: int, station: str, staff_id: Optional[int]
    ) -> TransitionResult:
        """
        Route an order to a station.

        A pending order moves to in_progress; an order already in
        progress is re-routed without changing its status.
        """
        order = self.store.find_order(order_id)
        self.check(order, OrderAction.ASSIGN_STATION)

        result = self._apply(
            order, OrderAction.ASSIGN_STATION, OrderStatus.IN_PROGRESS, staff_id,
            fields={"assigned_station": station}, station=station,
        )
        logger.info(f"Order {order_id} assigned to station {station} by staff {staff_id}")
        return result

    def remove_item(
        self, order_id: int, item_id: int, staff_id: Optional[int]
    ) -> TransitionResult:
        order = self.store.find_order(order_id)
        current = self.check(order, OrderAction.REMOVE_ITEM)
        notes = f"Removed item {item_id}"

        result = TransitionResult(
            order=order,
            order_id=order.id,
            kitchen_id=order.kitchen_id,
            action=OrderAction.REMOVE_ITEM,
            previous_status=current,
            new_status=current,
            actor_id=staff_id,
            notes=notes,
        )
        with self._transaction():
            self.store.remove_item(order_id, item_id, actor_id=staff_id)
            self.store.record_event(
                order_id, OrderAction.REMOVE_ITEM.value, current, current,
                staff_id, notes=notes,
            )
            result.snapshot = self._capture(order)

        logger.info(f"Item {item_id} removed from order {order_id} by staff {staff_id}")
        return result

    def _apply(
        self,
        order: Order,
        action: OrderAction,
        new_status: OrderStatus,
        actor_id: Optional[int],
        fields: Optional[Dict[str, Any]] = None,
        station: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TransitionResult:
        previous = OrderStatus(order.status)
        values: Dict[str, Any] = {"modified_by_id": actor_id}
        values.update(fields or {})

        result = TransitionResult(
            order=order,
            order_id=order.id,
            kitchen_id=order.kitchen_id,
            action=action,
            previous_status=previous,
            new_status=new_status,
            actor_id=actor_id,
            station=station,
            notes=notes,
        )

        # Status change, audit row and table release commit together
        with self._transaction():
            self.store.update_order_state(
                order.id, previous, new_status, values, attempted=action.value
            )
            self.store.record_event(
                order.id, action.value, previous, new_status, actor_id,
                station=station, notes=notes,
            )
            if action in TABLE_RELEASING_ACTIONS and order.table_id:
                self.tables.release_table(order.table_id)
                result.table_released = True
            result.snapshot = self._capture(order)

        return result

    def _capture(self, order: Order) -> Any:
        """Reload the order inside the open transaction and run the snapshot hook"""
        self.store.flush()
        self.store.refresh(order)
        return self.snapshot(order) if self.snapshot else None

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
