# backend/modules/kds/services/kds_service.py

"""
Kitchen station management: seeding the configured stations, listing them
and tracking which staff member is working each one.
"""

from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging

from core.config import Settings, get_settings
from core.exceptions import NotFoundError
from ..models.kds_models import KitchenStation

logger = logging.getLogger(__name__)


STATION_DESCRIPTIONS = {
    "grill": "Grilled items, meats, and hot dishes",
    "salad": "Salads, cold dishes, and appetizers",
    "pizza": "Pizzas, pastas, and Italian dishes",
    "dessert": "Desserts, sweets, and final preparations",
    "beverage": "Drinks, beverages, and liquid preparations",
}


class KDSService:
    """Service for managing kitchen stations"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def seed_stations(self) -> List[KitchenStation]:
        """Create any configured station that does not exist yet"""
        created = []
        for priority, station_id in enumerate(self.settings.station_ids):
            if self.get_station(station_id):
                continue

            station = KitchenStation(
                id=station_id,
                display_name=self.settings.station_display_name(station_id),
                description=STATION_DESCRIPTIONS.get(station_id),
                priority=priority,
                capacity=self.settings.kds_station_capacity,
                is_active=True,
            )
            self.db.add(station)
            created.append(station)

        if created:
            self.db.commit()
            logger.info(
                f"Seeded kitchen stations: {', '.join(s.id for s in created)}"
            )
        return created

    def get_station(self, station_id: str) -> Optional[KitchenStation]:
        return self.db.query(KitchenStation).filter_by(id=station_id).first()

    def find_station(self, station_id: str) -> KitchenStation:
        station = self.get_station(station_id)
        if not station:
            raise NotFoundError(f"Station {station_id} not found")
        return station

    def get_all_stations(self, include_inactive: bool = False) -> List[KitchenStation]:
        query = self.db.query(KitchenStation)
        if not include_inactive:
            query = query.filter(KitchenStation.is_active.is_(True))
        return query.order_by(KitchenStation.priority, KitchenStation.id).all()

    def assign_staff(self, station_id: str, staff_id: Optional[int]) -> KitchenStation:
        """Set or clear (``staff_id=None``) the staff member working a station"""
        station = self.find_station(station_id)
        station.current_staff_id = staff_id
        station.staff_assigned_at = datetime.utcnow() if staff_id else None

        self.db.commit()
        self.db.refresh(station)

        logger.info(f"Station {station_id} staff set to {staff_id}")
        return station
