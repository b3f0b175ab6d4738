"""
Sold Vehicles API Endpoints.

Sold records are created by mark-sold; direct creation covers sales that
never passed through the inventory. Edits are corrective only.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.sold_vehicle import SoldVehicle
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.schemas.sold_vehicle import (
    SoldVehicleCreate, SoldVehicleUpdate, SoldVehicleResponse, SoldVehicleListResponse
)
from fleet_backend.app.core.dependencies import get_current_user
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.entity_store import EntityStore
from fleet_backend.app.services.inventory import check_vin_available

router = APIRouter(prefix="/sold-vehicles", tags=["Sold Vehicles"])

NULLABLE_EDIT_FIELDS = {"in_stock_date", "customer", "trade_in_id"}


@router.get("", response_model=SoldVehicleListResponse)
async def list_sold_vehicles(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List sold vehicles, newest first."""
    vehicles = await EntityStore(db).list(EntityKind.SOLD_VEHICLES)
    return SoldVehicleListResponse(
        sold_vehicles=[SoldVehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.get("/{vehicle_id}", response_model=SoldVehicleResponse)
async def get_sold_vehicle(
    vehicle_id: int = Path(..., description="Sold vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await EntityStore(db).require(EntityKind.SOLD_VEHICLES, vehicle_id)
    return SoldVehicleResponse.model_validate(vehicle)


@router.post("", response_model=SoldVehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_sold_vehicle(
    vehicle_data: SoldVehicleCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a sold vehicle directly."""
    store = EntityStore(db)
    async with store.transaction():
        await check_vin_available(store, EntityKind.SOLD_VEHICLES, vehicle_data.vin)
        values = vehicle_data.model_dump(exclude={"customer"})
        values["date_added"] = values["date_added"] or utcnow()
        vehicle = SoldVehicle(
            id=await store.next_vehicle_id(),
            customer=vehicle_data.customer.model_dump(by_alias=True, exclude_none=True) if vehicle_data.customer else None,
            **values
        )
        await store.put(EntityKind.SOLD_VEHICLES, vehicle)
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.SOLD_VEHICLE_CREATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.SOLD_VEHICLES.value,
        entity_id=vehicle.id,
        metadata={"vin": vehicle.vin}
    )

    return SoldVehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=SoldVehicleResponse)
async def update_sold_vehicle(
    vehicle_id: int = Path(..., description="Sold vehicle ID"),
    vehicle_data: SoldVehicleUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Corrective edit of a sold vehicle.

    Status stays sold; a sold vehicle never returns to inventory.
    """
    update_data = {
        field: value
        for field, value in vehicle_data.model_dump(exclude_unset=True, exclude={"customer"}).items()
        if value is not None or field in NULLABLE_EDIT_FIELDS
    }
    if "customer" in vehicle_data.model_fields_set:
        customer = vehicle_data.customer
        update_data["customer"] = customer.model_dump(by_alias=True, exclude_none=True) if customer else None

    store = EntityStore(db)
    async with store.transaction():
        vehicle = await store.require(EntityKind.SOLD_VEHICLES, vehicle_id)
        for field, value in update_data.items():
            setattr(vehicle, field, value)
        await db.flush()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.SOLD_VEHICLE_UPDATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.SOLD_VEHICLES.value,
        entity_id=vehicle.id,
        metadata={"fields": sorted(update_data)}
    )

    return SoldVehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sold_vehicle(
    vehicle_id: int = Path(..., description="Sold vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a sold vehicle. Its trade-in and documents are kept."""
    store = EntityStore(db)
    async with store.transaction():
        await store.require(EntityKind.SOLD_VEHICLES, vehicle_id)
        await store.delete(EntityKind.SOLD_VEHICLES, vehicle_id)

    await log_event(
        db=db,
        action=AuditAction.SOLD_VEHICLE_DELETED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.SOLD_VEHICLES.value,
        entity_id=vehicle_id
    )
