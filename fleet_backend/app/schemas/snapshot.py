"""
Snapshot (export/import) Pydantic schemas.

Export emits camelCase documents compatible with files produced by earlier
versions of the product. Import validates each record on its own so that one
malformed record does not abort the batch.
"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from fleet_backend.app.models.snapshot_enums import DuplicateAction
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.base import CamelModel, BlankAsNone
from fleet_backend.app.schemas.document import DocumentResponse
from fleet_backend.app.schemas.sold_vehicle import SoldVehicleResponse
from fleet_backend.app.schemas.trade_in import TradeInResponse
from fleet_backend.app.schemas.vehicle import VehicleResponse


class ExportInfo(CamelModel):
    """Snapshot envelope."""
    source: str
    version: str
    export_date: datetime


class ExportSnapshot(CamelModel):
    """Full-dataset snapshot."""
    export_info: ExportInfo
    inventory: List[VehicleResponse]
    sold_vehicles: List[SoldVehicleResponse]
    trade_ins: List[TradeInResponse]
    documents: List[DocumentResponse]


# Import records. Unknown keys (legacy "documents" arrays, createdAt, ...) are ignored.


class SnapshotRecord(CamelModel):
    model_config = ConfigDict(extra="ignore")


class VehicleSnapshotRecord(SnapshotRecord):
    """Inventory record as found in a snapshot."""
    id: Optional[int] = None
    stock_number: str = Field(..., min_length=1)
    vin: str = Field(..., min_length=1)
    year: int
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    trim: Optional[str] = ""
    color: Optional[str] = ""
    fleet_company: Optional[str] = ""
    operation_company: Optional[str] = ""
    status: VehicleStatus = VehicleStatus.IN_STOCK
    date_added: Annotated[Optional[datetime], BlankAsNone] = None
    in_stock_date: Annotated[Optional[datetime], BlankAsNone] = None
    pickup_date: Annotated[Optional[date], BlankAsNone] = None
    pickup_time: Annotated[Optional[str], BlankAsNone] = None
    pickup_notes: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None
    trade_in_id: Optional[int] = None
    
    @field_validator("vin")
    @classmethod
    def strip_vin(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("VIN is required")
        return value
    
    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields["status"].default
        return value


class SoldVehicleSnapshotRecord(VehicleSnapshotRecord):
    """Sold vehicle record as found in a snapshot."""
    status: VehicleStatus = VehicleStatus.SOLD


class TradeInSnapshotRecord(SnapshotRecord):
    """Trade-in record as found in a snapshot. VIN is the only natural key."""
    id: Optional[int] = None
    stock_number: Optional[str] = None
    vin: Annotated[Optional[str], BlankAsNone] = None
    year: int
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    trim: Optional[str] = ""
    color: str = Field(..., min_length=1)
    mileage: Annotated[Optional[int], BlankAsNone] = None
    notes: Optional[str] = ""
    picked_up: bool = False
    picked_up_date: Annotated[Optional[datetime], BlankAsNone] = None
    date_added: Annotated[Optional[datetime], BlankAsNone] = None
    
    @field_validator("vin")
    @classmethod
    def strip_vin(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else None


class DocumentSnapshotRecord(SnapshotRecord):
    """Document metadata as found in a snapshot; binary payloads are never included."""
    id: str = Field(..., min_length=1)
    vehicle_id: int
    file_name: str = Field(..., min_length=1)
    file_size: int = 0
    storage_locator: str = Field(
        "",
        validation_alias=AliasChoices("storageLocator", "storage_locator", "filePath"),
    )
    upload_date: Annotated[Optional[datetime], BlankAsNone] = None


# Import request / response


class ImportRequest(CamelModel):
    """Schema for POST /import."""
    data: Optional[Dict[str, Any]] = None
    duplicate_action: DuplicateAction = DuplicateAction.SKIP
    dry_run: bool = False


class ImportRecordError(CamelModel):
    """One record that failed to import."""
    index: int
    vin: Optional[str] = None
    record_id: Optional[str] = None
    error: str


class ImportKindResult(CamelModel):
    """Counts for one entity kind."""
    imported: int = 0
    skipped: int = 0
    errors: List[ImportRecordError] = Field(default_factory=list)


class ImportResults(CamelModel):
    """Per-kind import results."""
    trade_ins: ImportKindResult = Field(default_factory=ImportKindResult)
    inventory: ImportKindResult = Field(default_factory=ImportKindResult)
    sold_vehicles: ImportKindResult = Field(default_factory=ImportKindResult)
    documents: ImportKindResult = Field(default_factory=ImportKindResult)


class ImportSummary(CamelModel):
    """Totals across every kind."""
    total_imported: int
    total_skipped: int
    total_errors: int


class ImportResponse(CamelModel):
    """Schema for the import result."""
    success: bool = True
    dry_run: bool = False
    summary: ImportSummary
    results: ImportResults
