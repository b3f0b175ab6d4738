"""
Inventory helpers used by the API layer.

Direct creates (with default stock numbers and the advisory VIN check),
maintenance of in-transit dates, trade-in pickup toggling and the enriched
trade-in listing.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.config import settings
from fleet_backend.app.core.exceptions import ConflictError
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.sold_vehicle import SoldVehicle
from fleet_backend.app.models.trade_in import TradeIn
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.trade_in import TradeInListItem
from fleet_backend.app.schemas.vehicle import VehicleCreate
from fleet_backend.app.services.entity_store import RESOURCE_NAMES, EntityStore

logger = logging.getLogger(__name__)


def default_stock_number(vin: str) -> str:
    """Dealer stock number derived from the VIN: CD + last five characters."""
    return f"CD{vin.strip()[-5:].upper()}"


async def check_vin_available(store: EntityStore, kind: EntityKind, vin: str) -> None:
    """
    Advisory duplicate-VIN check for direct creates.

    Logs a warning, or raises ConflictError when ``enforce_unique_vin`` is on.
    """
    existing = await store.find_by_vin(kind, vin)
    if existing is None:
        return
    if settings.enforce_unique_vin:
        raise ConflictError(RESOURCE_NAMES[kind], vin, existing.id)
    logger.warning(
        "%s with VIN %s already exists (id=%s); creating another",
        RESOURCE_NAMES[kind], vin, existing.id,
    )


async def create_vehicle(db: AsyncSession, data: VehicleCreate) -> Vehicle:
    """
    Add a vehicle to the active inventory.

    A vehicle created past in-transit is already on the lot, so its
    in_stock_date is stamped at creation.
    """
    store = EntityStore(db)
    async with store.transaction():
        await check_vin_available(store, EntityKind.INVENTORY, data.vin)
        now = utcnow()
        vehicle = Vehicle(
            id=await store.next_vehicle_id(),
            stock_number=(data.stock_number or "").strip() or default_stock_number(data.vin),
            vin=data.vin,
            year=data.year,
            make=data.make.strip(),
            model=data.model.strip(),
            trim=data.trim,
            color=data.color,
            fleet_company=data.fleet_company,
            operation_company=data.operation_company,
            status=data.status,
            date_added=now,
            in_stock_date=None if data.status is VehicleStatus.IN_TRANSIT else now,
            pickup_notes=data.pickup_notes,
            customer=data.customer.model_dump(by_alias=True, exclude_none=True) if data.customer else None,
        )
        await store.put(EntityKind.INVENTORY, vehicle)
    await db.refresh(vehicle)
    return vehicle


async def clear_in_transit_dates(db: AsyncSession) -> int:
    """
    Clear in_stock_date on every vehicle still in transit.

    Returns:
        Number of vehicles changed
    """
    async with EntityStore(db).transaction():
        result = await db.execute(
            update(Vehicle)
            .where(Vehicle.status == VehicleStatus.IN_TRANSIT, Vehicle.in_stock_date.is_not(None))
            .values(in_stock_date=None)
            .execution_options(synchronize_session=False)
        )
        changes = result.rowcount
    logger.info("Cleared in_stock_date on %d in-transit vehicles", changes)
    return changes


async def toggle_trade_in_pickup(db: AsyncSession, trade_in_id: int) -> TradeIn:
    """Flip picked_up; picked_up_date follows it (now when set, cleared when unset)."""
    store = EntityStore(db)
    async with store.transaction():
        trade_in = await store.require(EntityKind.TRADE_INS, trade_in_id)
        trade_in.picked_up = not trade_in.picked_up
        trade_in.picked_up_date = utcnow() if trade_in.picked_up else None
        await db.flush()
    await db.refresh(trade_in)
    return trade_in


def _list_item(trade_in: TradeIn, customer: Optional[Dict[str, Any]], fleet: Optional[str], operation: Optional[str]) -> TradeInListItem:
    item = TradeInListItem.model_validate(trade_in)
    item.customer_name = (customer or {}).get("name") or ""
    item.fleet_company = fleet
    item.operation_company = operation
    return item


async def list_trade_ins(db: AsyncSession) -> List[TradeInListItem]:
    """Trade-ins newest first, with the customer and companies of the sale that produced each."""
    result = await db.execute(
        select(TradeIn, SoldVehicle.customer, SoldVehicle.fleet_company, SoldVehicle.operation_company)
        .outerjoin(SoldVehicle, SoldVehicle.trade_in_id == TradeIn.id)
        .order_by(TradeIn.date_added.desc(), TradeIn.id.desc())
    )
    return [_list_item(*row) for row in result.all()]
