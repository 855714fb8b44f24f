from sqlalchemy import (Column, Integer, String, ForeignKey, DateTime,
                        Numeric, Text, Index, CheckConstraint)
from sqlalchemy.orm import relationship
from core.database import Base
from core.mixins import TimestampMixin, SoftDeleteMixin
from ..enums.order_enums import OrderStatus, ProductKind
from datetime import datetime
from decimal import Decimal


class Order(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(Integer, ForeignKey("dining_tables.id"),
                      nullable=True, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    turn_id = Column(Integer, nullable=True, index=True)
    kitchen_id = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, index=True,
                    default=OrderStatus.PENDING.value)
    comments = Column(Text, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=True)
    assigned_station = Column(String(50), nullable=True)
    paused_from = Column(String, nullable=True)
    ordered_at = Column(DateTime, nullable=False, default=datetime.utcnow,
                        index=True)
    # Who performed the last transition
    modified_by_id = Column(Integer, nullable=True)

    order_items = relationship("OrderItem", back_populates="order",
                               order_by="OrderItem.id")
    audit_events = relationship("OrderAuditEvent", back_populates="order",
                                order_by="OrderAuditEvent.id")

    __table_args__ = (
        Index("idx_orders_status_ordered_at", "status", "ordered_at"),
    )

    @property
    def live_items(self):
        return [item for item in self.order_items if item.deleted_at is None]


class OrderItem(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"),
                      nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("menu_products.id"),
                        nullable=False)
    product_kind = Column(String(20), nullable=False,
                          default=ProductKind.DISH.value)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    comment = Column(Text, nullable=True)

    order = relationship("Order", back_populates="order_items")
    product = relationship("MenuProduct")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
    )

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.unit_price)


class OrderAuditEvent(Base):
    """One row per committed order transition"""
    __tablename__ = "order_audit_events"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"),
                      nullable=False, index=True)
    action = Column(String(30), nullable=False)
    previous_status = Column(String, nullable=True)
    new_status = Column(String, nullable=False)
    actor_id = Column(Integer, nullable=True)
    station = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    order = relationship("Order", back_populates="audit_events")
