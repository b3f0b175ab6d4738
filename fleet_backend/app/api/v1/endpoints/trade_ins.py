"""
Trade-ins API Endpoints.

Fleet returns captured directly or produced by a sale, plus pickup tracking.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.trade_in import TradeIn
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.schemas.trade_in import (
    TradeInCreate, TradeInUpdate, TradeInResponse, TradeInListResponse, TogglePickupResponse
)
from fleet_backend.app.core.dependencies import get_current_user
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.entity_store import EntityStore
from fleet_backend.app.services.inventory import check_vin_available, list_trade_ins, toggle_trade_in_pickup

router = APIRouter(prefix="/trade-ins", tags=["Trade-ins"])

NULLABLE_EDIT_FIELDS = {"stock_number", "mileage"}


@router.get("", response_model=TradeInListResponse)
async def list_all_trade_ins(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List trade-ins, newest first.

    Each item carries the customer name and companies of the sale that
    produced it, when there is one.
    """
    items = await list_trade_ins(db)
    return TradeInListResponse(trade_ins=items, total=len(items))


@router.get("/{trade_in_id}", response_model=TradeInResponse)
async def get_trade_in(
    trade_in_id: int = Path(..., description="Trade-in ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trade_in = await EntityStore(db).require(EntityKind.TRADE_INS, trade_in_id)
    return TradeInResponse.model_validate(trade_in)


@router.post("", response_model=TradeInResponse, status_code=status.HTTP_201_CREATED)
async def create_trade_in(
    trade_in_data: TradeInCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Capture a trade-in directly."""
    store = EntityStore(db)
    async with store.transaction():
        await check_vin_available(store, EntityKind.TRADE_INS, trade_in_data.vin)
        trade_in = TradeIn(
            **trade_in_data.model_dump(),
            picked_up=False,
            date_added=utcnow()
        )
        await store.put(EntityKind.TRADE_INS, trade_in)
    await db.refresh(trade_in)

    await log_event(
        db=db,
        action=AuditAction.TRADE_IN_CREATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.TRADE_INS.value,
        entity_id=trade_in.id,
        metadata={"vin": trade_in.vin}
    )

    return TradeInResponse.model_validate(trade_in)


@router.put("/{trade_in_id}", response_model=TradeInResponse)
async def update_trade_in(
    trade_in_id: int = Path(..., description="Trade-in ID"),
    trade_in_data: TradeInUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Edit a trade-in. Pickup state changes through toggle-pickup only."""
    update_data = {
        field: value
        for field, value in trade_in_data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_EDIT_FIELDS
    }

    store = EntityStore(db)
    async with store.transaction():
        trade_in = await store.require(EntityKind.TRADE_INS, trade_in_id)
        for field, value in update_data.items():
            setattr(trade_in, field, value)
        await db.flush()
    await db.refresh(trade_in)

    await log_event(
        db=db,
        action=AuditAction.TRADE_IN_UPDATED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.TRADE_INS.value,
        entity_id=trade_in.id,
        metadata={"fields": sorted(update_data)}
    )

    return TradeInResponse.model_validate(trade_in)


@router.delete("/{trade_in_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trade_in(
    trade_in_id: int = Path(..., description="Trade-in ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a trade-in. Sold vehicles referencing it keep the stale id."""
    store = EntityStore(db)
    async with store.transaction():
        await store.require(EntityKind.TRADE_INS, trade_in_id)
        await store.delete(EntityKind.TRADE_INS, trade_in_id)

    await log_event(
        db=db,
        action=AuditAction.TRADE_IN_DELETED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.TRADE_INS.value,
        entity_id=trade_in_id
    )


@router.post("/{trade_in_id}/toggle-pickup", response_model=TogglePickupResponse)
async def toggle_pickup(
    trade_in_id: int = Path(..., description="Trade-in ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Flip a trade-in between picked up and waiting for pickup."""
    trade_in = await toggle_trade_in_pickup(db, trade_in_id)

    await log_event(
        db=db,
        action=AuditAction.TRADE_IN_PICKUP_TOGGLED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.TRADE_INS.value,
        entity_id=trade_in.id,
        metadata={"picked_up": trade_in.picked_up}
    )

    return TogglePickupResponse(
        picked_up=trade_in.picked_up,
        picked_up_date=trade_in.picked_up_date
    )
