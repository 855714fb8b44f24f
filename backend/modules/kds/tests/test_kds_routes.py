# backend/modules/kds/tests/test_kds_routes.py

"""
HTTP and WebSocket tests for the KDS API.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from core.database import get_db
from modules.kds.routes import get_workflow_service
from modules.kds.services.kds_notifier import RealtimeNotifier
from modules.kds.services.kds_service import KDSService
from modules.kds.services.kitchen_workflow_service import KitchenWorkflowService
from modules.orders.enums.order_enums import OrderStatus
from tests.factories import OrderFactory, OrderWithItemsFactory

BASE = "/api/v1/kds"


@pytest.fixture
def client(db_session, test_settings, recording_channel):
    def override_get_db():
        yield db_session

    def override_workflow_service():
        return KitchenWorkflowService(
            db_session,
            settings=test_settings,
            notifier=RealtimeNotifier(recording_channel),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workflow_service] = override_workflow_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestQueueEndpoints:
    def test_get_queue(self, client):
        order = OrderWithItemsFactory(items=["Pollo a la parrilla"])

        response = client.get(f"{BASE}/queue")

        assert response.status_code == 200
        data = response.json()
        assert [o["id"] for o in data["pending"]] == [order.id]
        assert data["pending"][0]["stations"] == ["grill"]
        assert data["estimated_wait_minutes"] == 15

    def test_get_queue_for_station(self, client):
        OrderWithItemsFactory(items=["Pollo a la parrilla"])
        drinks = OrderWithItemsFactory(items=["Jugo de naranja"])

        response = client.get(f"{BASE}/queue", params={"station": "beverage"})

        assert [o["id"] for o in response.json()["pending"]] == [drinks.id]

    def test_unknown_station_is_bad_request(self, client):
        response = client.get(f"{BASE}/queue", params={"station": "sushi"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_STATION"

    def test_unknown_status_is_unprocessable(self, client):
        response = client.get(f"{BASE}/queue", params={"status": "baking"})

        assert response.status_code == 422

    def test_order_detail(self, client):
        order = OrderWithItemsFactory(items=["Pizza margarita"])

        response = client.get(f"{BASE}/orders/{order.id}")

        assert response.status_code == 200
        assert response.json()["primary_station"] == "pizza"

    def test_missing_order(self, client):
        response = client.get(f"{BASE}/orders/999")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestTransitionEndpoints:
    def test_start_and_complete(self, client):
        order = OrderWithItemsFactory(items=["Pollo a la parrilla"])

        started = client.post(f"{BASE}/orders/{order.id}/start", json={"staff_id": 4})
        completed = client.post(
            f"{BASE}/orders/{order.id}/complete",
            json={"staff_id": 4, "notes": "bien cocido", "station_id": "grill"},
        )

        assert started.status_code == 200
        assert started.json()["new_status"] == OrderStatus.IN_PROGRESS.value
        assert completed.status_code == 200
        body = completed.json()
        assert body["previous_status"] == "in_progress"
        assert body["new_status"] == "ready"
        assert body["order"]["comments"] == "Station grill: bien cocido"

    def test_invalid_transition_is_conflict(self, client):
        order = OrderFactory(status=OrderStatus.READY.value)

        response = client.post(f"{BASE}/orders/{order.id}/complete", json={"staff_id": 4})

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "INVALID_TRANSITION"
        assert body["current_state"] == "ready"
        assert body["attempted"] == "complete"
        assert body["path"] == f"{BASE}/orders/{order.id}/complete"

    def test_staff_id_is_required(self, client):
        order = OrderFactory()

        response = client.post(f"{BASE}/orders/{order.id}/start", json={})

        assert response.status_code == 422

    def test_cancel_releases_table(self, client):
        order = OrderFactory()

        response = client.post(f"{BASE}/orders/{order.id}/cancel", json={"staff_id": 2})

        assert response.status_code == 200
        assert response.json()["table_released"] is True

    def test_pause_and_resume(self, client):
        order = OrderFactory()

        paused = client.post(
            f"{BASE}/orders/{order.id}/pause", json={"staff_id": 2, "comment": "Sin gas"}
        )
        resumed = client.post(f"{BASE}/orders/{order.id}/resume", json={"staff_id": 2})

        assert paused.json()["order"]["comments"] == "Sin gas"
        assert resumed.json()["new_status"] == "pending"

    def test_assign_to_unknown_station(self, client):
        order = OrderFactory()

        response = client.post(
            f"{BASE}/orders/{order.id}/assign", json={"staff_id": 2, "station_id": "sushi"}
        )

        assert response.status_code == 400

    def test_remove_item(self, client):
        order = OrderWithItemsFactory(items=["Pizza margarita", "Agua mineral"])
        item_id = order.order_items[0].id

        response = client.delete(
            f"{BASE}/orders/{order.id}/items/{item_id}", params={"staff_id": 3}
        )

        assert response.status_code == 200
        assert response.json()["order"]["item_count"] == 1


class TestStationEndpoints:
    def test_list_stations(self, client, db_session, test_settings):
        KDSService(db_session, test_settings).seed_stations()

        response = client.get(f"{BASE}/stations")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [
            "grill", "salad", "pizza", "dessert", "beverage"
        ]

    def test_assign_staff(self, client, db_session, test_settings):
        KDSService(db_session, test_settings).seed_stations()

        response = client.put(f"{BASE}/stations/salad/staff", json={"staff_id": 9})

        assert response.status_code == 200
        assert response.json()["current_staff_id"] == 9

    def test_stats(self, client):
        OrderFactory()

        response = client.get(f"{BASE}/stats", params={"period": "week"})

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == "week"
        assert body["total_orders"] == 1


class TestWebSocket:
    def test_subscribe_and_ping(self, client):
        with client.websocket_connect(f"{BASE}/ws/kitchen-1") as websocket:
            assert websocket.receive_json() == {"type": "subscribed", "topic": "kitchen-1"}

            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"


def test_root(client):
    assert client.get("/").json() == {"message": "Kitchen workflow service is running"}
