# backend/modules/kds/tests/test_kitchen_workflow.py

"""
Tests for the kitchen workflow facade: transitions end to end, realtime
fan-out, ticket printing and error propagation.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from modules.kds.schemas.kds_schemas import StatsPeriod
from modules.kds.services.kds_notifier import (
    ORDER_STATUS_UPDATE,
    STATION_ORDER_UPDATE,
    STATION_UPDATE,
    RealtimeNotifier,
)
from modules.kds.services.kds_service import KDSService
from modules.kds.services.kitchen_workflow_service import KitchenWorkflowService, resolve_period
from modules.kds.services.ticket_printer import TicketPrinter
from modules.orders.enums.order_enums import OrderPriority, OrderStatus
from modules.tables.models.table_models import DiningTable, TableStatus
from tests.factories import OrderFactory, OrderWithItemsFactory


@pytest.fixture
def printer():
    return Mock(wraps=TicketPrinter())


@pytest.fixture
def workflow(db_session, test_settings, recording_channel, printer):
    return KitchenWorkflowService(
        db_session,
        settings=test_settings,
        notifier=RealtimeNotifier(recording_channel),
        printer=printer,
    )


def db_error():
    return OperationalError("UPDATE orders", {}, Exception("database is locked"))


class TestStartCompleteScenario:
    @pytest.mark.asyncio
    async def test_start_then_complete_then_complete_again(
        self, workflow, recording_channel, printer
    ):
        order = OrderWithItemsFactory(items=["Pollo a la parrilla", "Jugo de naranja"])

        started = await workflow.start(order.id, staff_id=1)
        await workflow.drain_notifications()

        assert started.new_status == OrderStatus.IN_PROGRESS
        assert started.order.status == OrderStatus.IN_PROGRESS
        printer.print_kitchen_ticket.assert_called_once()
        topics = recording_channel.topics(ORDER_STATUS_UPDATE)
        assert f"order-{order.id}" in topics
        assert "kitchen-1" in topics

        completed = await workflow.complete(order.id, staff_id=1, notes="extra crispy")
        assert completed.new_status == OrderStatus.READY
        assert "extra crispy" in completed.order.comments
        printer.print_receipt.assert_called_once()

        with pytest.raises(InvalidTransitionError) as exc_info:
            await workflow.complete(order.id, staff_id=1)
        assert exc_info.value.current_state == "ready"
        assert exc_info.value.attempted == "complete"

    @pytest.mark.asyncio
    async def test_payload_carries_order_and_status(self, workflow, recording_channel):
        order = OrderWithItemsFactory(items=["Pizza margarita"])

        await workflow.start(order.id, staff_id=9)
        await workflow.drain_notifications()

        topic, event_type, payload = recording_channel.events[0]
        assert topic == f"order-{order.id}"
        assert event_type == ORDER_STATUS_UPDATE
        assert payload["order_id"] == order.id
        assert payload["status"] == "in_progress"
        assert payload["previous_status"] == "pending"
        assert payload["actor_id"] == 9

    @pytest.mark.asyncio
    async def test_station_topic_only_when_station_named(self, workflow, recording_channel):
        first = OrderWithItemsFactory(items=["Pizza margarita"])
        second = OrderWithItemsFactory(items=["Pizza margarita"])

        await workflow.start(first.id, staff_id=1)
        await workflow.start(second.id, staff_id=1, station_id="pizza")
        await workflow.drain_notifications()

        assert recording_channel.topics(STATION_ORDER_UPDATE) == ["station-pizza"]

    @pytest.mark.asyncio
    async def test_order_detail_in_response(self, workflow):
        order = OrderWithItemsFactory(items=["Pollo a la parrilla", "Jugo de naranja"])

        response = await workflow.start(order.id, staff_id=1)

        detail = response.order
        assert detail.item_count == 2
        assert detail.stations == ["grill", "beverage"]
        assert detail.priority == OrderPriority.LOW
        assert detail.eta == order.ordered_at + timedelta(minutes=24)
        assert [event.action for event in detail.history] == ["start"]


class TestCancelScenario:
    @pytest.mark.asyncio
    async def test_cancel_pending_order_releases_table(self, workflow, db_session):
        order = OrderWithItemsFactory(items=["Ensalada mixta"])

        cancelled = await workflow.cancel(order.id, staff_id=2)

        assert cancelled.new_status == OrderStatus.CANCELLED
        assert cancelled.table_released
        assert db_session.get(DiningTable, order.table_id).status == TableStatus.AVAILABLE.value

        with pytest.raises(InvalidTransitionError):
            await workflow.start(order.id, staff_id=2)

    @pytest.mark.asyncio
    async def test_table_release_failure_leaves_order_untouched(
        self, workflow, db_session, recording_channel
    ):
        order = OrderWithItemsFactory(items=["Ensalada mixta"])
        db_session.query(DiningTable).filter_by(id=order.table_id).delete()
        db_session.commit()

        with pytest.raises(NotFoundError):
            await workflow.cancel(order.id, staff_id=2)
        await workflow.drain_notifications()

        assert workflow.store.current_status(order.id) == OrderStatus.PENDING
        assert recording_channel.events == []

    @pytest.mark.asyncio
    async def test_database_failure_during_release_rolls_back_delivery(
        self, workflow, recording_channel
    ):
        order = OrderWithItemsFactory(items=["Ensalada mixta"], status=OrderStatus.READY.value)

        with patch.object(workflow.tables, "release_table", side_effect=db_error()):
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await workflow.deliver(order.id, staff_id=2)
        await workflow.drain_notifications()

        assert exc_info.value.operation == "deliver"
        assert workflow.store.current_status(order.id) == OrderStatus.READY
        assert recording_channel.events == []


class TestRefundScenario:
    @pytest.mark.asyncio
    async def test_refund_after_31_days_fails(self, workflow):
        ordered_at = datetime.utcnow() - timedelta(days=31)
        order = OrderFactory(status=OrderStatus.DELIVERED.value, ordered_at=ordered_at)

        with pytest.raises(ValidationError) as exc_info:
            await workflow.refund(order.id, staff_id=1)

        assert exc_info.value.error_code == "REFUND_WINDOW_EXCEEDED"


class TestBestEffortSideEffects:
    @pytest.mark.asyncio
    async def test_broadcast_failure_does_not_fail_transition(self, db_session, test_settings):
        channel = Mock()
        channel.publish = AsyncMock(side_effect=ConnectionError("socket closed"))
        workflow = KitchenWorkflowService(
            db_session, settings=test_settings, notifier=RealtimeNotifier(channel)
        )
        order = OrderWithItemsFactory(items=["Pizza margarita"])

        result = await workflow.start(order.id, staff_id=1)
        await workflow.drain_notifications()

        assert result.new_status == OrderStatus.IN_PROGRESS
        assert channel.publish.await_count == 2

    @pytest.mark.asyncio
    async def test_printer_failure_is_logged_only(self, workflow, printer, caplog):
        printer.print_kitchen_ticket.side_effect = RuntimeError("printer offline")
        order = OrderWithItemsFactory(items=["Pizza margarita"])

        result = await workflow.start(order.id, staff_id=1)

        assert result.new_status == OrderStatus.IN_PROGRESS
        assert "printer offline" in caplog.text


class TestErrorPropagation:
    @pytest.mark.asyncio
    async def test_store_failure_becomes_upstream_unavailable(self, workflow):
        order = OrderFactory()

        with patch.object(workflow.state_machine, "start", side_effect=db_error()):
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await workflow.start(order.id, staff_id=1)

        error = exc_info.value
        assert error.status_code == 503
        assert error.operation == "start"
        assert error.order_id == order.id
        assert isinstance(error.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_queue_failure_becomes_upstream_unavailable(self, workflow):
        with patch.object(workflow.store, "list_orders", side_effect=db_error()):
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await workflow.get_queue()

        assert exc_info.value.operation == "get_queue"

    @pytest.mark.asyncio
    async def test_typed_errors_pass_through(self, workflow):
        with pytest.raises(NotFoundError):
            await workflow.start(12345, staff_id=1)

    @pytest.mark.asyncio
    async def test_staff_id_is_required(self, workflow):
        order = OrderFactory()

        with pytest.raises(ValidationError):
            await workflow.start(order.id, staff_id=None)

    @pytest.mark.asyncio
    async def test_unknown_station_is_rejected(self, workflow):
        order = OrderFactory()

        with pytest.raises(ValidationError):
            await workflow.assign_station(order.id, "sushi", staff_id=1)


class TestOtherTransitions:
    @pytest.mark.asyncio
    async def test_pause_resume_deliver(self, workflow):
        order = OrderWithItemsFactory(items=["Torta de chocolate"])
        await workflow.start(order.id, staff_id=1)

        assert (await workflow.pause(order.id, 1, comment="Esperando horno")).new_status == OrderStatus.PAUSED
        assert (await workflow.resume(order.id, 1)).new_status == OrderStatus.IN_PROGRESS
        assert (await workflow.complete(order.id, 1)).new_status == OrderStatus.READY

        delivered = await workflow.deliver(order.id, 1)
        assert delivered.new_status == OrderStatus.DELIVERED
        assert delivered.table_released

    @pytest.mark.asyncio
    async def test_assign_station_publishes_to_station(self, workflow, recording_channel):
        order = OrderWithItemsFactory(items=["Ensalada césar"])

        result = await workflow.assign_station(order.id, "Salad", staff_id=3)
        await workflow.drain_notifications()

        assert result.station == "salad"
        assert result.new_status == OrderStatus.IN_PROGRESS
        assert "station-salad" in recording_channel.topics(STATION_ORDER_UPDATE)

    @pytest.mark.asyncio
    async def test_assigning_pending_order_prints_kitchen_ticket(self, workflow, printer):
        order = OrderWithItemsFactory(items=["Ensalada césar"])

        await workflow.assign_station(order.id, "salad", staff_id=3)

        printer.print_kitchen_ticket.assert_called_once()
        detail, station = printer.print_kitchen_ticket.call_args.args
        assert detail.id == order.id
        assert station == "salad"

    @pytest.mark.asyncio
    async def test_reassigning_started_order_does_not_reprint(self, workflow, printer):
        order = OrderWithItemsFactory(items=["Ensalada césar"])
        await workflow.start(order.id, staff_id=3)

        await workflow.assign_station(order.id, "grill", staff_id=3)

        printer.print_kitchen_ticket.assert_called_once()

    @pytest.mark.asyncio
    async def test_remove_item(self, workflow):
        order = OrderWithItemsFactory(items=["Pizza margarita", "Agua mineral"])
        item_id = order.order_items[1].id

        result = await workflow.remove_item(order.id, item_id, staff_id=4)

        assert result.order.item_count == 1
        assert result.order.stations == ["pizza"]


class TestStations:
    @pytest.mark.asyncio
    async def test_stations_with_load(self, workflow, db_session, test_settings):
        KDSService(db_session, test_settings).seed_stations()
        OrderWithItemsFactory(items=["Hamburguesa clásica"])
        started = OrderWithItemsFactory(items=["Carne asada", "Cerveza artesanal"])
        await workflow.start(started.id, staff_id=1)

        stations = {s.id: s for s in await workflow.get_stations()}

        assert list(stations) == ["grill", "salad", "pizza", "dessert", "beverage"]
        assert stations["grill"].pending_orders == 1
        assert stations["grill"].in_progress_orders == 1
        assert stations["grill"].load_percentage == 20.0
        assert stations["beverage"].in_progress_orders == 1
        assert stations["salad"].pending_orders == 0
        assert stations["grill"].description == "Grilled items, meats, and hot dishes"

    @pytest.mark.asyncio
    async def test_assign_staff_publishes_station_update(
        self, workflow, db_session, test_settings, recording_channel
    ):
        KDSService(db_session, test_settings).seed_stations()

        view = await workflow.assign_staff_to_station("grill", 21)
        await workflow.drain_notifications()

        assert view.current_staff_id == 21
        assert view.staff_assigned_at is not None
        assert recording_channel.topics(STATION_UPDATE) == ["station-grill"]

    @pytest.mark.asyncio
    async def test_assign_staff_to_unseeded_station(self, workflow):
        with pytest.raises(NotFoundError):
            await workflow.assign_staff_to_station("grill", 21)


class TestStats:
    @pytest.mark.asyncio
    async def test_day_stats_with_station_breakdown(self, workflow):
        OrderWithItemsFactory(items=["Pizza margarita"], status=OrderStatus.DELIVERED.value, minutes_ago=60)
        OrderWithItemsFactory(items=["Pollo a la parrilla"], status=OrderStatus.DELIVERED.value, minutes_ago=30)
        OrderWithItemsFactory(items=["Flan casero"], status=OrderStatus.CANCELLED.value, minutes_ago=20)
        OrderWithItemsFactory(items=["Carne asada"], minutes_ago=10)
        OrderWithItemsFactory(items=["Carne asada"], status=OrderStatus.DELIVERED.value, minutes_ago=60 * 30)

        stats = await workflow.get_stats("day")

        assert stats.period == StatsPeriod.DAY
        assert stats.total_orders == 4
        assert stats.completed_orders == 2
        assert stats.pending_orders == 2
        assert stats.cancelled_orders == 1
        assert stats.completion_rate == 50.0
        assert stats.cancellation_rate == 25.0

        by_station = {s.station_id: s for s in stats.stations}
        assert by_station["grill"].total_orders == 2
        assert by_station["grill"].efficiency_rate == 50.0
        assert by_station["pizza"].efficiency_rate == 100.0
        assert by_station["salad"].total_orders == 0
        assert by_station["salad"].efficiency_rate == 0.0

    @pytest.mark.asyncio
    async def test_week_includes_older_orders(self, workflow):
        OrderWithItemsFactory(items=["Carne asada"], minutes_ago=60 * 30)

        assert (await workflow.get_stats("week")).total_orders == 1

    def test_unknown_period_falls_back_to_day(self):
        assert resolve_period("fortnight") == StatsPeriod.DAY
        assert resolve_period(None) == StatsPeriod.DAY
        assert resolve_period("hour") == StatsPeriod.HOUR


class TestTicketPrinter:
    @pytest.mark.asyncio
    async def test_kitchen_ticket_lists_items_and_station(self, workflow):
        order = OrderWithItemsFactory(items=["Pizza margarita", "Agua mineral"])
        detail = await workflow.get_order_detail(order.id)

        ticket = TicketPrinter().format_kitchen_ticket(detail, station="pizza")

        assert ticket.startswith(f"KITCHEN TICKET - ORDER #{order.id}\n")
        assert "Station: pizza\n" in ticket
        assert "Pizza margarita" in ticket
        assert "Agua mineral" in ticket

    @pytest.mark.asyncio
    async def test_receipt_totals_item_subtotals(self, workflow):
        order = OrderWithItemsFactory(items=["Pizza margarita", "Agua mineral"])
        detail = await workflow.get_order_detail(order.id)

        receipt = TicketPrinter().format_receipt(detail)

        total = sum(item.subtotal for item in detail.items)
        assert f"TOTAL {total:>26.2f}" in receipt
