"""
Sold vehicle database model.
"""

from sqlalchemy import Column, Integer
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.mixins import VehicleRecordMixin
from fleet_backend.app.models.vehicle_enums import VehicleStatus


class SoldVehicle(VehicleRecordMixin, Base):
    """
    Sold vehicle model.
    
    Frozen copy of a Vehicle at the time of sale. Keeps the original
    vehicle id so document metadata keyed by that id stays linked.
    Corrective edits are allowed; re-promotion to inventory is not.
    """
    __tablename__ = "sold_vehicles"
    
    # Not autoincrement: sold-conversion reuses the inventory id
    id = Column(Integer, primary_key=True, index=True)
    
    def __init__(self, **kwargs):
        kwargs.setdefault("status", VehicleStatus.SOLD)
        super().__init__(**kwargs)
    
    def __repr__(self):
        return f"<SoldVehicle(id={self.id}, stock='{self.stock_number}', vin='{self.vin}')>"
