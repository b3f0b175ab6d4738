"""
Column sets shared by the active-inventory and sold-vehicle tables.

A SoldVehicle is a frozen copy of the Vehicle it was converted from, so both
tables carry the same descriptive, assignment, pickup and customer columns.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, JSON, Enum
from sqlalchemy.sql import func

from fleet_backend.app.models.vehicle_enums import VehicleStatus, enum_values


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VehicleRecordMixin:
    """Columns common to Vehicle and SoldVehicle."""
    
    # Vehicle identification
    stock_number = Column(String(50), nullable=False, index=True)
    vin = Column(String(17), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    trim = Column(String(100), nullable=False, default="")
    color = Column(String(50), nullable=False, default="")
    
    # Ownership / assignment
    fleet_company = Column(String(200), nullable=False, default="")
    operation_company = Column(String(200), nullable=False, default="")
    
    # Lifecycle
    status = Column(
        Enum(VehicleStatus, values_callable=enum_values, native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    date_added = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    in_stock_date = Column(DateTime(timezone=True), nullable=True)
    
    # Pickup scheduling (meaningful only while status is pickup-scheduled)
    pickup_date = Column(Date, nullable=True)
    pickup_time = Column(String(10), nullable=True)
    pickup_notes = Column(Text, nullable=True)
    
    # Customer contact and, once sold, sale details (name, phone, email,
    # saleAmount, saleDate, paymentMethod, paymentReference, notes)
    customer = Column(JSON, nullable=True)
    
    # Weak back-reference to a TradeIn (no FK; trade-ins outlive vehicles)
    trade_in_id = Column(Integer, nullable=True, index=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
