# backend/modules/kds/models/kds_models.py

"""
Kitchen Display System models for kitchen stations.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from sqlalchemy.sql import func
from core.database import Base


class KitchenStation(Base):
    """Kitchen station configuration"""
    __tablename__ = "kitchen_stations"

    # Station code from configuration, e.g. "grill"
    id = Column(String(50), primary_key=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text)
    priority = Column(Integer, default=0)  # Lower value is matched first
    capacity = Column(Integer, default=10)  # Soft limit, display only
    is_active = Column(Boolean, default=True, index=True)

    # Staff assignment
    current_staff_id = Column(Integer, nullable=True)
    staff_assigned_at = Column(DateTime)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    def __repr__(self):
        return f"<KitchenStation(id='{self.id}', display_name='{self.display_name}')>"
