# backend/modules/kds/routes/kds_routes.py

"""
API routes for Kitchen Display System.
"""

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from core.database import get_db
from modules.orders.enums.order_enums import OrderStatus
from ..services.kds_notifier import RealtimeNotifier
from ..services.kds_websocket_manager import kds_websocket_manager
from ..services.kitchen_workflow_service import KitchenWorkflowService
from ..schemas.kds_schemas import (
    AssignStationRequest,
    CompleteOrderRequest,
    KitchenStats,
    OrderDetail,
    PauseOrderRequest,
    QueueView,
    StaffActionRequest,
    StartOrderRequest,
    StationStaffUpdate,
    StationView,
    StatsPeriod,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/kds", tags=["Kitchen Display System"])

# Shared by every request so pending broadcasts can be drained on shutdown
realtime_notifier = RealtimeNotifier(kds_websocket_manager)


def get_workflow_service(db: Session = Depends(get_db)) -> KitchenWorkflowService:
    return KitchenWorkflowService(db, notifier=realtime_notifier)


# ========== Queue & Orders ==========

@router.get("/queue", response_model=QueueView)
async def get_queue(
    station: Optional[str] = Query(None, description="Station id, e.g. grill"),
    status: Optional[OrderStatus] = Query(None),
    kitchen_id: Optional[int] = Query(None),
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    """Kitchen queue bucketed by pending / in progress / ready"""
    return await service.get_queue(station=station, status=status, kitchen_id=kitchen_id)


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order_detail(
    order_id: int,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.get_order_detail(order_id)


@router.post("/orders/{order_id}/start", response_model=TransitionResponse)
async def start_order(
    order_id: int,
    request: StartOrderRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.start(order_id, request.staff_id, request.station_id)


@router.post("/orders/{order_id}/complete", response_model=TransitionResponse)
async def complete_order(
    order_id: int,
    request: CompleteOrderRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.complete(
        order_id, request.staff_id, notes=request.notes, station_id=request.station_id
    )


@router.post("/orders/{order_id}/pause", response_model=TransitionResponse)
async def pause_order(
    order_id: int,
    request: PauseOrderRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.pause(order_id, request.staff_id, comment=request.comment)


@router.post("/orders/{order_id}/resume", response_model=TransitionResponse)
async def resume_order(
    order_id: int,
    request: StaffActionRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.resume(order_id, request.staff_id)


@router.post("/orders/{order_id}/cancel", response_model=TransitionResponse)
async def cancel_order(
    order_id: int,
    request: StaffActionRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    """Cancel a pending or in-progress order and release its table"""
    return await service.cancel(order_id, request.staff_id)


@router.post("/orders/{order_id}/deliver", response_model=TransitionResponse)
async def deliver_order(
    order_id: int,
    request: StaffActionRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.deliver(order_id, request.staff_id)


@router.post("/orders/{order_id}/refund", response_model=TransitionResponse)
async def refund_order(
    order_id: int,
    request: StaffActionRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.refund(order_id, request.staff_id)


@router.post("/orders/{order_id}/assign", response_model=TransitionResponse)
async def assign_order_to_station(
    order_id: int,
    request: AssignStationRequest,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.assign_station(order_id, request.station_id, request.staff_id)


@router.delete("/orders/{order_id}/items/{item_id}", response_model=TransitionResponse)
async def remove_order_item(
    order_id: int,
    item_id: int,
    staff_id: int = Query(..., gt=0),
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    """Remove an item from a pending order"""
    return await service.remove_item(order_id, item_id, staff_id)


# ========== Stations ==========

@router.get("/stations", response_model=List[StationView])
async def list_stations(
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    """Configured stations with their current load"""
    return await service.get_stations()


@router.put("/stations/{station_id}/staff", response_model=StationView)
async def assign_station_staff(
    station_id: str,
    update: StationStaffUpdate,
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.assign_staff_to_station(station_id, update.staff_id)


# ========== Statistics ==========

@router.get("/stats", response_model=KitchenStats)
async def get_kitchen_stats(
    period: str = Query(StatsPeriod.DAY.value, description="hour, day, week or month"),
    service: KitchenWorkflowService = Depends(get_workflow_service),
):
    return await service.get_stats(period)


# ========== WebSocket Endpoints ==========

@router.websocket("/ws/{topic}")
async def websocket_endpoint(websocket: WebSocket, topic: str):
    """Subscribe a display to a topic such as order-12, station-grill or kitchen-1"""
    await kds_websocket_manager.connect(websocket, topic)

    try:
        await websocket.send_json({"type": "subscribed", "topic": topic})

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        kds_websocket_manager.disconnect(websocket, topic)
    except Exception as e:
        logger.error(f"WebSocket error for {topic}: {str(e)}")
        kds_websocket_manager.disconnect(websocket, topic)
