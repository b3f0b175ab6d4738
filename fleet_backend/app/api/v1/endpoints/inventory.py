"""
Active Inventory API Endpoints.

Vehicle intake, corrective edits, status changes and sold-conversion.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse,
    StatusChangeRequest, CustomerUpdate, MarkSoldRequest, MarkSoldResponse,
    InTransitDatesClearedResponse, TradeInInfo
)
from fleet_backend.app.core.dependencies import get_current_user
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.entity_store import EntityStore
from fleet_backend.app.services.inventory import create_vehicle, check_vin_available, clear_in_transit_dates
from fleet_backend.app.services.status_engine import plan_transition, apply_plan
from fleet_backend.app.services.sold_conversion import SoldConversionService

router = APIRouter(prefix="/inventory", tags=["Inventory"])

# Columns that may be cleared by an edit; everything else ignores explicit nulls
NULLABLE_EDIT_FIELDS = {"in_stock_date", "pickup_notes"}


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the active inventory, newest first.
    """
    query = select(Vehicle).order_by(Vehicle.date_added.desc(), Vehicle.id.desc())
    count_query = select(func.count(Vehicle.id))
    if status_filter:
        query = query.where(Vehicle.status == status_filter)
        count_query = count_query.where(Vehicle.status == status_filter)

    total = (await db.execute(count_query)).scalar()
    vehicles = (await db.execute(query)).scalars().all()

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=total
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a single inventory vehicle."""
    vehicle = await EntityStore(db).require(EntityKind.INVENTORY, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def add_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a vehicle to the active inventory.

    Stock number defaults to CD + the last five VIN characters. A duplicate
    VIN is logged (or rejected with 409 when unique VINs are enforced).
    """
    vehicle = await create_vehicle(db, vehicle_data)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CREATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        entity_id=vehicle.id,
        metadata={"vin": vehicle.vin, "stock_number": vehicle.stock_number, "status": vehicle.status.value}
    )

    return VehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    vehicle_data: VehicleUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Corrective edit of an inventory vehicle.

    Only supplied fields change. Status is changed through PUT /{id}/status.
    """
    store = EntityStore(db)
    update_data = {
        field: value
        for field, value in vehicle_data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_EDIT_FIELDS
    }

    async with store.transaction():
        vehicle = await store.require(EntityKind.INVENTORY, vehicle_id)
        if "vin" in update_data and update_data["vin"] != vehicle.vin:
            await check_vin_available(store, EntityKind.INVENTORY, update_data["vin"])
        for field, value in update_data.items():
            setattr(vehicle, field, value)
        await db.flush()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_UPDATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        entity_id=vehicle.id,
        metadata={"fields": sorted(update_data)}
    )

    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an inventory vehicle.

    Document metadata for the vehicle is left in place.
    """
    store = EntityStore(db)
    async with store.transaction():
        vehicle = await store.require(EntityKind.INVENTORY, vehicle_id)
        vin = vehicle.vin
        await store.delete(EntityKind.INVENTORY, vehicle_id)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_DELETED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        entity_id=vehicle_id,
        metadata={"vin": vin}
    )


@router.put("/{vehicle_id}/status", response_model=VehicleResponse)
async def change_status(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    request: StatusChangeRequest = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Change a vehicle's status.

    - Moving out of in-transit stamps inStockDate
    - pickup-scheduled requires pickupDate and pickupTime
    - sold is not reachable here (use mark-sold)
    """
    store = EntityStore(db)
    async with store.transaction():
        vehicle = await store.require(EntityKind.INVENTORY, vehicle_id)
        previous = vehicle.status
        plan = plan_transition(
            vehicle,
            request.status,
            pickup_date=request.pickup_date,
            pickup_time=request.pickup_time,
        )
        apply_plan(vehicle, plan)
        await db.flush()

    if plan.is_noop:
        return VehicleResponse.model_validate(vehicle)

    await db.refresh(vehicle)
    await log_event(
        db=db,
        action=AuditAction.VEHICLE_STATUS_CHANGED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        entity_id=vehicle.id,
        metadata={"from": previous.value, "to": plan.requested.value}
    )

    return VehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}/customer", response_model=VehicleResponse)
async def update_customer(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    customer_data: CustomerUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update customer contact details; other customer fields are kept."""
    store = EntityStore(db)
    async with store.transaction():
        vehicle = await store.require(EntityKind.INVENTORY, vehicle_id)
        customer = dict(vehicle.customer or {})
        customer.update(customer_data.model_dump(by_alias=True, exclude_unset=True))
        vehicle.customer = customer
        await db.flush()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CUSTOMER_UPDATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        entity_id=vehicle.id
    )

    return VehicleResponse.model_validate(vehicle)


@router.post("/{vehicle_id}/mark-sold", response_model=MarkSoldResponse)
async def mark_sold(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    request: MarkSoldRequest = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Sell a vehicle: move it to sold vehicles, optionally capturing a trade-in.

    Atomic: either everything is written or nothing is.
    """
    trade_in = (request.trade_in or TradeInInfo()) if request.has_trade_in else None
    result = await SoldConversionService(db).convert(vehicle_id, request, trade_in)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_SOLD,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.SOLD_VEHICLES.value,
        entity_id=result.sold_vehicle_id,
        metadata={
            "sale_amount": request.sale_amount,
            "trade_in_id": result.trade_in_id
        }
    )

    return MarkSoldResponse(
        sold_vehicle_id=result.sold_vehicle_id,
        trade_in_id=result.trade_in_id
    )


@router.post("/fix-intransit-dates", response_model=InTransitDatesClearedResponse)
async def fix_in_transit_dates(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Clear inStockDate on vehicles that are still in transit."""
    changes = await clear_in_transit_dates(db)

    await log_event(
        db=db,
        action=AuditAction.IN_TRANSIT_DATES_CLEARED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.INVENTORY.value,
        metadata={"changes": changes}
    )

    return InTransitDatesClearedResponse(
        changes=changes,
        message=f"Fixed {changes} in-transit vehicles"
    )
