"""
Active inventory database model.
"""

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.mixins import VehicleRecordMixin
from fleet_backend.app.models.vehicle_enums import VehicleStatus


class Vehicle(VehicleRecordMixin, Base):
    """
    Vehicle model.
    
    A vehicle in the active inventory, from intake (in-transit) through
    inspection and pickup scheduling. Selling it moves the row to
    ``sold_vehicles``; it never comes back.
    """
    __tablename__ = "inventory"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __init__(self, **kwargs):
        kwargs.setdefault("status", VehicleStatus.IN_TRANSIT)
        super().__init__(**kwargs)
    
    def __repr__(self):
        return f"<Vehicle(id={self.id}, stock='{self.stock_number}', vin='{self.vin}', status='{self.status.value}')>"
