"""
Vehicle Pydantic schemas.

Request and response models for the active inventory, status changes and
sold-conversion.
"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.base import CamelModel, BlankAsNone, VinStr


class CustomerInfo(CamelModel):
    """Customer sub-record. Sale fields are filled in by sold-conversion."""
    model_config = ConfigDict(extra="allow")
    
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    sale_amount: Optional[float] = None
    sale_date: Optional[str] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None


class CustomerUpdate(CamelModel):
    """Schema for updating customer contact details of an inventory vehicle."""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None


class VehicleCreate(CamelModel):
    """Schema for adding a vehicle to the active inventory."""
    stock_number: Optional[str] = Field(None, max_length=50, description="Defaults to CD + last 5 of VIN")
    vin: VinStr = Field(..., description="17-character VIN")
    year: int = Field(..., ge=1900, le=2100)
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    trim: str = Field("", max_length=100)
    color: str = Field("", max_length=50)
    fleet_company: str = Field("", max_length=200)
    operation_company: str = Field("", max_length=200)
    status: VehicleStatus = Field(VehicleStatus.IN_TRANSIT, description="Initial status (never 'sold')")
    pickup_notes: Optional[str] = None
    customer: Optional[CustomerInfo] = None
    
    @field_validator("status")
    @classmethod
    def reject_sold(cls, value: VehicleStatus) -> VehicleStatus:
        if value is VehicleStatus.SOLD:
            raise ValueError("A vehicle cannot be created as sold; use mark-sold")
        return value


class VehicleUpdate(CamelModel):
    """
    Schema for corrective edits of an inventory vehicle.
    
    Status is absent: status changes go through the status endpoint.
    """
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
    pickup_notes: Optional[str] = None


class StatusChangeRequest(CamelModel):
    """Schema for a status change; pickup fields only for pickup-scheduled."""
    status: VehicleStatus
    pickup_date: Annotated[Optional[date], BlankAsNone] = None
    pickup_time: Optional[str] = Field(None, max_length=10)


class VehicleResponse(CamelModel):
    """Schema for an active inventory vehicle."""
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
    updated_at: Optional[datetime] = None


class VehicleListResponse(CamelModel):
    """Schema for the inventory list."""
    vehicles: List[VehicleResponse]
    total: int


class InTransitDatesClearedResponse(CamelModel):
    """Response of the in-transit in-stock-date cleanup."""
    success: bool = True
    changes: int
    message: str


# Sold-conversion


class TradeInInfo(CamelModel):
    """Trade-in captured during a sale. Required fields are checked by the service."""
    vin: Optional[str] = None
    year: Annotated[Optional[int], BlankAsNone] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    color: Optional[str] = None
    mileage: Annotated[Optional[int], BlankAsNone] = Field(None, ge=0)


class SaleInfo(CamelModel):
    """Sale details merged into the customer sub-record."""
    sale_amount: Annotated[Optional[float], BlankAsNone] = None
    sale_date: Annotated[Optional[date], BlankAsNone] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None


class MarkSoldRequest(SaleInfo):
    """Schema for POST /inventory/{id}/mark-sold."""
    has_trade_in: bool = False
    trade_in: Optional[TradeInInfo] = None


class MarkSoldResponse(CamelModel):
    """Schema for the sold-conversion result."""
    success: bool = True
    message: str = "Vehicle marked as sold"
    sold_vehicle_id: int
    trade_in_id: Optional[int] = None
