# backend/modules/kds/services/kitchen_workflow_service.py

"""
Kitchen workflow facade.

Composes the state machine, queue aggregation, station routing, ticket
printing and realtime notification into the operations exposed to the
HTTP layer. Each call either returns a result or raises one APIError;
database failures surface as UpstreamUnavailableError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from core.exceptions import UpstreamUnavailableError, ValidationError
from modules.menu.services.catalog_service import ProductCatalog
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.models.order_models import Order
from modules.orders.services.order_store import OrderStore
from modules.tables.services.table_service import TableService

from ..schemas.kds_schemas import (
    KitchenStats,
    OrderDetail,
    QueueView,
    StationStats,
    StationView,
    StatsPeriod,
    TransitionResponse,
)
from .kds_notifier import RealtimeNotifier
from .kds_queue_service import KitchenQueueService
from .kds_service import KDSService
from .kds_timing_service import OrderTimingCalculator
from .order_state_machine import OrderStateMachine, TransitionResult
from .station_routing_service import StationClassifier
from .ticket_printer import TicketPrinter

logger = logging.getLogger(__name__)


PERIOD_WINDOWS = {
    StatsPeriod.HOUR: timedelta(hours=1),
    StatsPeriod.DAY: timedelta(days=1),
    StatsPeriod.WEEK: timedelta(days=7),
    StatsPeriod.MONTH: timedelta(days=30),
}

# Orders counted as completed in stats
COMPLETED_STATUSES = (OrderStatus.DELIVERED.value,)


def resolve_period(period: Union[str, StatsPeriod, None]) -> StatsPeriod:
    """Unknown or missing periods fall back to a day"""
    try:
        return StatsPeriod(period)
    except ValueError:
        return StatsPeriod.DAY


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


class KitchenWorkflowService:
    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        notifier: Optional[RealtimeNotifier] = None,
        printer: Optional[TicketPrinter] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.notifier = notifier or RealtimeNotifier()
        self.printer = printer or TicketPrinter()

        self.store = OrderStore(db)
        self.catalog = ProductCatalog(db)
        self.tables = TableService(db)
        self.stations = KDSService(db, self.settings)
        self.classifier = StationClassifier.from_settings(self.settings)
        self.timing = OrderTimingCalculator.from_settings(self.settings)
        self.state_machine = OrderStateMachine(
            self.store, self.tables, self.settings, snapshot=self._snapshot
        )
        self.queue = KitchenQueueService(
            self.store, self.catalog, self.classifier, self.timing, self.settings
        )

    # Reads
    async def get_queue(
        self,
        station: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        kitchen_id: Optional[int] = None,
    ) -> QueueView:
        with self._collaborator_call("get_queue"):
            return self.queue.get_queue(station=station, status=status, kitchen_id=kitchen_id)

    async def get_order_detail(self, order_id: int) -> OrderDetail:
        with self._collaborator_call("get_order_detail", order_id):
            order = self.store.find_order(order_id)
            return self.queue.build_order_detail(order)

    # Transitions
    async def start(
        self, order_id: int, staff_id: int, station_id: Optional[str] = None
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        station = self.classifier.validate_station(station_id) if station_id else None

        with self._collaborator_call("start", order_id):
            result = self.state_machine.start(order_id, staff_id, station)
        return self._after_transition(result, ticket="kitchen")

    async def complete(
        self,
        order_id: int,
        staff_id: int,
        notes: Optional[str] = None,
        station_id: Optional[str] = None,
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        station = self.classifier.validate_station(station_id) if station_id else None

        with self._collaborator_call("complete", order_id):
            result = self.state_machine.complete(order_id, staff_id, notes, station)
        return self._after_transition(result, ticket="receipt")

    async def pause(
        self, order_id: int, staff_id: int, comment: Optional[str] = None
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("pause", order_id):
            result = self.state_machine.pause(order_id, staff_id, comment)
        return self._after_transition(result)

    async def resume(self, order_id: int, staff_id: int) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("resume", order_id):
            result = self.state_machine.resume(order_id, staff_id)
        return self._after_transition(result)

    async def cancel(self, order_id: int, staff_id: int) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("cancel", order_id):
            result = self.state_machine.cancel(order_id, staff_id)
        return self._after_transition(result)

    async def deliver(self, order_id: int, staff_id: int) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("deliver", order_id):
            result = self.state_machine.deliver(order_id, staff_id)
        return self._after_transition(result)

    async def refund(
        self, order_id: int, staff_id: int, now: Optional[datetime] = None
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("refund", order_id):
            result = self.state_machine.refund(order_id, staff_id, now)
        return self._after_transition(result)

    async def assign_station(
        self, order_id: int, station_id: str, staff_id: int
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        station = self.classifier.validate_station(station_id)

        with self._collaborator_call("assign_station", order_id):
            result = self.state_machine.assign_station(order_id, station, staff_id)
        # Assigning a pending order starts it, so the ticket goes out too
        ticket = "kitchen" if result.previous_status == OrderStatus.PENDING else None
        return self._after_transition(result, ticket=ticket)

    async def remove_item(
        self, order_id: int, item_id: int, staff_id: int
    ) -> TransitionResponse:
        self._require_actor(staff_id)
        with self._collaborator_call("remove_item", order_id):
            result = self.state_machine.remove_item(order_id, item_id, staff_id)
        return self._after_transition(result)

    # Stations
    async def get_stations(self) -> List[StationView]:
        with self._collaborator_call("get_stations"):
            stations = self.stations.get_all_stations()
            open_orders = self.store.list_orders(
                statuses=[OrderStatus.PENDING, OrderStatus.IN_PROGRESS]
            )
            products = self.queue.lookup_products(open_orders)

            load: Dict[str, Dict[str, int]] = {
                station.id: {"pending": 0, "in_progress": 0} for station in stations
            }
            for order in open_orders:
                for station_id in self.queue.order_stations(order, products):
                    if station_id in load:
                        load[station_id][order.status] += 1

            views = []
            for station in stations:
                counts = load[station.id]
                active = counts["pending"] + counts["in_progress"]
                view = StationView.model_validate(station)
                view.pending_orders = counts["pending"]
                view.in_progress_orders = counts["in_progress"]
                view.load_percentage = (
                    round(active / station.capacity * 100, 1) if station.capacity else 0.0
                )
                views.append(view)
            return views

    async def assign_staff_to_station(
        self, station_id: str, staff_id: Optional[int]
    ) -> StationView:
        station_id = self.classifier.validate_station(station_id)
        with self._collaborator_call("assign_staff_to_station"):
            station = self.stations.assign_staff(station_id, staff_id)
            view = StationView.model_validate(station)

        self.notifier.station_updated(
            station_id,
            {
                "station_id": station_id,
                "current_staff_id": staff_id,
                "staff_assigned_at": view.staff_assigned_at,
            },
        )
        return view

    # Stats
    async def get_stats(
        self,
        period: Union[str, StatsPeriod, None] = StatsPeriod.DAY,
        now: Optional[datetime] = None,
    ) -> KitchenStats:
        period = resolve_period(period)
        now = now or datetime.utcnow()
        since = now - PERIOD_WINDOWS[period]

        with self._collaborator_call("get_stats"):
            orders = self.store.list_orders(since=since)
            products = self.queue.lookup_products(orders)

        total = len(orders)
        completed = sum(1 for o in orders if o.status in COMPLETED_STATUSES)
        cancelled = sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value)

        station_stats = []
        for station_id in self.classifier.station_ids:
            station_orders = [
                o for o in orders
                if station_id in self.queue.order_stations(o, products)
            ]
            station_completed = sum(
                1 for o in station_orders if o.status in COMPLETED_STATUSES
            )
            station_stats.append(
                StationStats(
                    station_id=station_id,
                    display_name=self.settings.station_display_name(station_id),
                    total_orders=len(station_orders),
                    completed_orders=station_completed,
                    efficiency_rate=_rate(station_completed, len(station_orders)),
                )
            )

        return KitchenStats(
            period=period,
            since=since,
            until=now,
            total_orders=total,
            completed_orders=completed,
            pending_orders=total - completed,
            cancelled_orders=cancelled,
            completion_rate=_rate(completed, total),
            cancellation_rate=_rate(cancelled, total),
            stations=station_stats,
            generated_at=datetime.utcnow(),
        )

    async def drain_notifications(self) -> None:
        await self.notifier.drain()

    # Helpers
    def _after_transition(
        self, result: TransitionResult, ticket: Optional[str] = None
    ) -> TransitionResponse:
        """Publish and print for a committed transition; nothing here reads the database"""
        self.notifier.order_transition(result)
        detail: OrderDetail = result.snapshot

        if ticket:
            try:
                if ticket == "kitchen":
                    self.printer.print_kitchen_ticket(detail, result.station)
                else:
                    self.printer.print_receipt(detail)
            except Exception as e:
                logger.warning(
                    f"Failed to print {ticket} ticket for order {result.order_id}: {str(e)}"
                )

        return TransitionResponse(
            action=result.action,
            previous_status=result.previous_status,
            new_status=result.new_status,
            actor_id=result.actor_id,
            station=result.station,
            table_released=result.table_released,
            order=detail,
        )

    def _snapshot(self, order: Order) -> OrderDetail:
        return self.queue.build_order_detail(order)
    @staticmethod
    def _require_actor(staff_id: Optional[int]) -> None:
        if staff_id is None or staff_id <= 0:
            raise ValidationError("A staff_id is required for order changes")

    @contextmanager
    def _collaborator_call(self, operation: str, order_id: Optional[int] = None):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"{operation} failed for order {order_id}: {type(e).__name__}: {str(e)}"
            )
            raise UpstreamUnavailableError(
                operation, order_id=order_id, reason=type(e).__name__
            ) from e
