# backend/modules/tables/models/table_models.py

from sqlalchemy import Column, Integer, String, Boolean
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin


class TableStatus(str, Enum):
    """Table availability status"""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class DiningTable(Base, TimestampMixin):
    """Restaurant table an order is seated at"""

    __tablename__ = "dining_tables"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    capacity = Column(Integer, nullable=False, default=4)
    status = Column(String(20), nullable=False, default=TableStatus.AVAILABLE.value)
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<DiningTable(id={self.id}, name='{self.name}', status={self.status})>"
