# backend/modules/kds/services/kds_queue_service.py

"""
Kitchen queue aggregation.

Queues are rebuilt from the order store on every call and never cached;
priority and ETA therefore always reflect the current time. Orders are
listed oldest first within each bucket. Priority is a display label only.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from core.config import Settings, get_settings
from core.exceptions import ValidationError
from modules.menu.services.catalog_service import (
    UNKNOWN_PRODUCT,
    ProductCatalog,
    ProductInfo,
)
from modules.orders.enums.order_enums import KITCHEN_STATUSES, OrderStatus
from modules.orders.models.order_models import Order, OrderItem
from modules.orders.services.order_store import OrderStore

from ..schemas.kds_schemas import (
    AuditEventView,
    OrderDetail,
    OrderItemView,
    QueueOrder,
    QueueView,
)
from .kds_timing_service import OrderTimingCalculator, minutes_elapsed
from .station_routing_service import StationClassifier

logger = logging.getLogger(__name__)


class KitchenQueueService:
    """Builds per-station and per-kitchen views over open orders"""

    def __init__(
        self,
        store: OrderStore,
        catalog: ProductCatalog,
        classifier: StationClassifier,
        timing: OrderTimingCalculator,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.classifier = classifier
        self.timing = timing
        self.settings = settings or get_settings()

    def get_queue(
        self,
        station: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        kitchen_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> QueueView:
        now = now or datetime.utcnow()
        if station:
            station = self.classifier.validate_station(station)
        if status is not None and status not in KITCHEN_STATUSES:
            raise ValidationError(
                f"Status '{status.value}' is not shown on kitchen displays. "
                f"Valid statuses: {', '.join(s.value for s in KITCHEN_STATUSES)}"
            )

        statuses = [status] if status else list(KITCHEN_STATUSES)
        limit = self.settings.kds_queue_limit
        # Station membership comes from the catalog, so station views cap after filtering
        orders = self.store.list_orders(
            statuses=statuses, kitchen_id=kitchen_id, limit=None if station else limit
        )

        products = self.lookup_products(orders)
        buckets: Dict[OrderStatus, List[QueueOrder]] = {s: [] for s in KITCHEN_STATUSES}

        shown = 0
        for order in orders:
            if shown >= limit:
                break
            stations = self.order_stations(order, products)
            # Multi-station orders appear in every matching station queue
            if station and station not in stations:
                continue
            buckets[OrderStatus(order.status)].append(
                self.build_queue_order(order, products, now)
            )
            shown += 1

        pending = buckets[OrderStatus.PENDING]
        view = QueueView(
            station=station,
            status=status,
            kitchen_id=kitchen_id,
            pending=pending,
            in_progress=buckets[OrderStatus.IN_PROGRESS],
            ready=buckets[OrderStatus.READY],
            total_orders=sum(len(bucket) for bucket in buckets.values()),
            estimated_wait_minutes=(
                len(pending) * self.settings.kds_wait_estimate_minutes_per_order
            ),
            last_updated=now,
        )
        logger.debug(
            f"Built kitchen queue station={station} status={status} "
            f"kitchen={kitchen_id}: {view.total_orders} orders"
        )
        return view

    def lookup_products(self, orders: Iterable[Order]) -> Dict[int, ProductInfo]:
        return self.catalog.lookup_many(
            item.product_id for order in orders for item in order.live_items
        )

    def item_stations(
        self, item: OrderItem, products: Dict[int, ProductInfo]
    ) -> FrozenSet[str]:
        info = products.get(item.product_id)
        if not info:
            return frozenset()
        return self.classifier.classify(info.name, info.category)

    def order_stations(
        self, order: Order, products: Dict[int, ProductInfo]
    ) -> FrozenSet[str]:
        stations: FrozenSet[str] = frozenset()
        for item in order.live_items:
            stations |= self.item_stations(item, products)
        return stations

    def build_item_view(
        self, item: OrderItem, products: Dict[int, ProductInfo]
    ) -> OrderItemView:
        info = products.get(item.product_id)
        return OrderItemView(
            id=item.id,
            product_id=item.product_id,
            product_name=info.name if info else UNKNOWN_PRODUCT,
            category_name=info.category if info else "",
            product_kind=item.product_kind,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
            comment=item.comment,
            stations=self.classifier.order_stations(self.item_stations(item, products)),
        )

    def build_queue_order(
        self,
        order: Order,
        products: Dict[int, ProductInfo],
        now: Optional[datetime] = None,
    ) -> QueueOrder:
        return QueueOrder(**self._order_fields(order, products, now or datetime.utcnow()))

    def build_order_detail(
        self,
        order: Order,
        products: Optional[Dict[int, ProductInfo]] = None,
        now: Optional[datetime] = None,
    ) -> OrderDetail:
        if products is None:
            products = self.lookup_products([order])
        fields = self._order_fields(order, products, now or datetime.utcnow())

        primary_station = order.assigned_station
        if not primary_station and fields["stations"]:
            primary_station = fields["stations"][0]

        return OrderDetail(
            **fields,
            turn_id=order.turn_id,
            total_amount=order.total_amount,
            paused_from=order.paused_from,
            modified_by_id=order.modified_by_id,
            primary_station=primary_station,
            updated_at=order.updated_at,
            history=[AuditEventView.model_validate(e) for e in order.audit_events],
        )

    def _order_fields(
        self, order: Order, products: Dict[int, ProductInfo], now: datetime
    ) -> dict:
        items = order.live_items
        return {
            "id": order.id,
            "table_id": order.table_id,
            "customer_id": order.customer_id,
            "kitchen_id": order.kitchen_id,
            "status": OrderStatus(order.status),
            "comments": order.comments,
            "assigned_station": order.assigned_station,
            "ordered_at": order.ordered_at,
            "priority": self.timing.priority(order, now),
            "eta": self.timing.eta(order, len(items)),
            "preparation_minutes": self.timing.preparation_minutes(len(items)),
            "minutes_elapsed": max(0, int(minutes_elapsed(order.ordered_at, now))),
            "stations": self.classifier.order_stations(
                self.order_stations(order, products)
            ),
            "item_count": len(items),
            "items": [self.build_item_view(item, products) for item in items],
        }
