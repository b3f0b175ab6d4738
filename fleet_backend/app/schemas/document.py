"""
Document metadata Pydantic schemas.
"""

from datetime import datetime
from typing import List

from pydantic import Field

from fleet_backend.app.schemas.base import CamelModel


class DocumentRegister(CamelModel):
    """Schema for registering metadata of a document already stored externally."""
    vehicle_id: int = Field(..., description="Vehicle or SoldVehicle id")
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., ge=0)
    storage_locator: str = Field(..., min_length=1, max_length=500, description="Opaque locator from document storage")


class DocumentResponse(CamelModel):
    """Schema for document metadata."""
    id: str
    vehicle_id: int
    file_name: str
    file_size: int
    storage_locator: str
    upload_date: datetime


class DocumentListResponse(CamelModel):
    """Schema for documents of one vehicle."""
    documents: List[DocumentResponse]
    total: int
