"""
Sold vehicle Pydantic schemas.
"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import Field

from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.base import CamelModel, BlankAsNone, VinStr
from fleet_backend.app.schemas.vehicle import CustomerInfo


class SoldVehicleCreate(CamelModel):
    """Schema for recording a sale that never passed through the inventory."""
    stock_number: str = Field(..., min_length=1, max_length=50)
    vin: VinStr
    year: int = Field(..., ge=1900, le=2100)
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    trim: str = Field("", max_length=100)
    color: str = Field("", max_length=50)
    fleet_company: str = Field("", max_length=200)
    operation_company: str = Field("", max_length=200)
    date_added: Annotated[Optional[datetime], BlankAsNone] = None
    in_stock_date: Annotated[Optional[datetime], BlankAsNone] = None
    customer: Optional[CustomerInfo] = None
    trade_in_id: Optional[int] = None


class SoldVehicleUpdate(CamelModel):
    """Schema for corrective edits of a sold vehicle."""
    stock_number: Optional[str] = Field(None, min_length=1, max_length=50)
    vin: Optional[VinStr] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    trim: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    fleet_company: Optional[str] = Field(None, max_length=200)
    operation_company: Optional[str] = Field(None, max_length=200)
    in_stock_date: Annotated[Optional[datetime], BlankAsNone] = None
    customer: Optional[CustomerInfo] = None
    trade_in_id: Optional[int] = None


class SoldVehicleResponse(CamelModel):
    """Schema for a sold vehicle."""
    id: int
    stock_number: str
    vin: str
    year: int
    make: str
    model: str
    trim: str
    color: str
    fleet_company: Optional[str]
    operation_company: Optional[str]
    status: VehicleStatus
    date_added: datetime
    in_stock_date: Optional[datetime]
    pickup_date: Optional[date]
    pickup_time: Optional[str]
    pickup_notes: Optional[str]
    customer: Optional[Dict[str, Any]]
    trade_in_id: Optional[int]
    created_at: Optional[datetime] = None


class SoldVehicleListResponse(CamelModel):
    """Schema for the sold vehicle list."""
    sold_vehicles: List[SoldVehicleResponse]
    total: int
