"""
Trade-in (fleet return) Pydantic schemas.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field

from fleet_backend.app.schemas.base import CamelModel, BlankAsNone, VinStr


class TradeInCreate(CamelModel):
    """Schema for capturing a trade-in directly."""
    stock_number: Optional[str] = Field(None, max_length=50)
    vin: VinStr
    year: int = Field(..., ge=1900, le=2100)
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    trim: str = Field("", max_length=100)
    color: str = Field(..., min_length=1, max_length=50)
    mileage: Annotated[Optional[int], BlankAsNone] = Field(None, ge=0)
    notes: str = ""


class TradeInUpdate(CamelModel):
    """
    Schema for editing a trade-in.
    
    Pickup state is changed through toggle-pickup only.
    """
    stock_number: Optional[str] = Field(None, max_length=50)
    vin: Optional[VinStr] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    trim: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    mileage: Annotated[Optional[int], BlankAsNone] = Field(None, ge=0)
    notes: Optional[str] = None


class TradeInResponse(CamelModel):
    """Schema for a trade-in."""
    id: int
    stock_number: Optional[str]
    vin: Optional[str]
    year: int
    make: str
    model: str
    trim: str
    color: str
    mileage: Optional[int]
    notes: str
    picked_up: bool
    picked_up_date: Optional[datetime]
    date_added: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TradeInListItem(TradeInResponse):
    """Trade-in enriched with the sale that produced it, if any."""
    customer_name: str = ""
    fleet_company: Optional[str] = None
    operation_company: Optional[str] = None


class TradeInListResponse(CamelModel):
    """Schema for the trade-in list."""
    trade_ins: List[TradeInListItem]
    total: int


class TogglePickupResponse(CamelModel):
    """Response after toggling pickup state."""
    success: bool = True
    picked_up: bool
    picked_up_date: Optional[datetime]
