"""
SQLAlchemy-backed order store.

State changes go through ``update_order_state`` which issues a single
conditional UPDATE guarded on the expected current status, so two
concurrent transitions of the same order can never both win.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from ..enums.order_enums import OrderStatus
from ..models.order_models import Order, OrderItem, OrderAuditEvent

logger = logging.getLogger(__name__)


class OrderStore:
    """Persistence gateway for orders, order items and their audit trail"""

    def __init__(self, db: Session):
        self.db = db

    # Reads
    def get_order(self, order_id: int) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.order_items))
            .filter(Order.id == order_id, Order.deleted_at.is_(None))
            .first()
        )

    def find_order(self, order_id: int) -> Order:
        order = self.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order with id {order_id} not found")
        return order

    def list_orders(
        self,
        statuses: Optional[Iterable[OrderStatus]] = None,
        kitchen_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        oldest_first: bool = True,
    ) -> List[Order]:
        query = self.db.query(Order).options(selectinload(Order.order_items))
        query = query.filter(Order.deleted_at.is_(None))

        if statuses:
            query = query.filter(Order.status.in_([s.value for s in statuses]))
        if kitchen_id is not None:
            query = query.filter(Order.kitchen_id == kitchen_id)
        if since:
            query = query.filter(Order.ordered_at >= since)
        if until:
            query = query.filter(Order.ordered_at < until)

        if oldest_first:
            query = query.order_by(Order.ordered_at.asc(), Order.id.asc())
        else:
            query = query.order_by(Order.ordered_at.desc(), Order.id.desc())

        if limit:
            query = query.limit(limit)

        return query.all()

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        return (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id == order_id, OrderItem.deleted_at.is_(None))
            .order_by(OrderItem.id)
            .all()
        )

    def current_status(self, order_id: int) -> Optional[OrderStatus]:
        status = (
            self.db.query(Order.status)
            .filter(Order.id == order_id, Order.deleted_at.is_(None))
            .scalar()
        )
        return OrderStatus(status) if status else None

    # Writes
    def update_order_state(
        self,
        order_id: int,
        expected: OrderStatus,
        new: OrderStatus,
        fields: Optional[Dict[str, Any]] = None,
        attempted: Optional[str] = None,
    ) -> None:
        """
        Compare-and-swap the order status.

        The caller owns the transaction: nothing is committed here so the
        audit row can be written atomically with the state change.

        Raises:
            InvalidTransitionError: status was no longer ``expected``
            NotFoundError: order absent or soft-deleted
        """
        values = {"status": new.value, "updated_at": datetime.utcnow()}
        values.update(fields or {})

        result = self.db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == expected.value,
                Order.deleted_at.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            self.db.rollback()
            current = self.current_status(order_id)
            if current is None:
                raise NotFoundError(f"Order with id {order_id} not found")
            logger.warning(
                f"Conditional update lost for order {order_id}: "
                f"expected {expected.value}, found {current.value}"
            )
            raise InvalidTransitionError(
                order_id=order_id,
                current_state=current.value,
                attempted=attempted or new.value,
                target_state=new.value if new != expected else None,
            )

    def record_event(
        self,
        order_id: int,
        action: str,
        previous_status: Optional[OrderStatus],
        new_status: OrderStatus,
        actor_id: Optional[int],
        station: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> OrderAuditEvent:
        event = OrderAuditEvent(
            order_id=order_id,
            action=action,
            previous_status=previous_status.value if previous_status else None,
            new_status=new_status.value,
            actor_id=actor_id,
            station=station,
            notes=notes,
            created_at=datetime.utcnow(),
        )
        self.db.add(event)
        return event

    def remove_item(
        self, order_id: int, item_id: int, actor_id: Optional[int] = None
    ) -> OrderItem:
        """Soft-remove one item; only pending orders may lose items."""
        order = self.find_order(order_id)
        item = next(
            (i for i in order.live_items if i.id == item_id), None
        )
        if not item:
            raise NotFoundError(f"Item {item_id} not found on order {order_id}")
        if len(order.live_items) == 1:
            raise ValidationError(
                f"Cannot remove the last item of order {order_id}; cancel the order instead"
            )

        # Same-state swap locks the order row against a concurrent start
        self.update_order_state(
            order_id, OrderStatus.PENDING, OrderStatus.PENDING,
            fields={"modified_by_id": actor_id},
            attempted="remove_item",
        )
        item.deleted_at = datetime.utcnow()
        return item

    def refresh(self, order: Order) -> Order:
        self.db.refresh(order)
        return order

    def flush(self) -> None:
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
