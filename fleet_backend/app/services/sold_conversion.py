"""
Sold-conversion service.

Moves a vehicle out of the active inventory into the sold set, optionally
capturing a trade-in from the same sale. The whole move is one unit of work:
a reader sees either the vehicle still in inventory with no sold record and
no trade-in, or the sold record, the trade-in and no inventory row.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import IllegalTransitionError, NotFoundError, ValidationError
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.sold_vehicle import SoldVehicle
from fleet_backend.app.models.trade_in import TradeIn
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.schemas.base import VIN_PATTERN, normalize_vin
from fleet_backend.app.schemas.vehicle import SaleInfo, TradeInInfo
from fleet_backend.app.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

# Columns a SoldVehicle copies verbatim from the Vehicle it replaces
COPIED_FIELDS = (
    "stock_number", "vin", "year", "make", "model", "trim", "color",
    "fleet_company", "operation_company", "date_added", "in_stock_date",
    "pickup_date", "pickup_time", "pickup_notes", "trade_in_id",
)


@dataclass(frozen=True)
class ConversionResult:
    sold_vehicle_id: int
    trade_in_id: Optional[int] = None


def validate_sale(sale: SaleInfo) -> None:
    """Raise ValidationError listing every missing or invalid sale field."""
    missing = []
    if sale.sale_amount is None or sale.sale_amount <= 0:
        missing.append("saleAmount")
    if sale.sale_date is None:
        missing.append("saleDate")
    if not (sale.payment_method or "").strip():
        missing.append("paymentMethod")
    if not (sale.payment_reference or "").strip():
        missing.append("paymentReference")
    if missing:
        raise ValidationError(
            "Sale amount, date, payment method and payment reference are required",
            details={"fields": missing},
        )


def validate_trade_in(trade_in: TradeInInfo) -> None:
    """Raise ValidationError unless VIN, year, make, model and color are present."""
    missing = [
        alias for alias, value in (
            ("vin", trade_in.vin),
            ("year", trade_in.year),
            ("make", trade_in.make),
            ("model", trade_in.model),
            ("color", trade_in.color),
        )
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(
            "Trade-in VIN, year, make, model and color are required",
            details={"fields": missing},
        )
    if not VIN_PATTERN.match(normalize_vin(trade_in.vin)):
        raise ValidationError(
            "Trade-in VIN must be 17 alphanumeric characters (I, O, Q not allowed)",
            details={"fields": ["vin"]},
        )


def merge_sale_into_customer(customer: Optional[Dict[str, Any]], sale: SaleInfo) -> Dict[str, Any]:
    """
    Merge sale details into the vehicle's customer sub-record.

    Existing contact fields are kept; name and notes are only replaced when
    the sale supplies them.
    """
    merged = dict(customer or {})
    if sale.customer_name and sale.customer_name.strip():
        merged["name"] = sale.customer_name.strip()
    merged["saleAmount"] = sale.sale_amount
    merged["saleDate"] = sale.sale_date.isoformat()
    merged["paymentMethod"] = sale.payment_method.strip()
    merged["paymentReference"] = sale.payment_reference.strip()
    if sale.notes:
        merged["notes"] = sale.notes
    return merged


def build_trade_in(vehicle: Vehicle, trade_in: TradeInInfo) -> TradeIn:
    return TradeIn(
        stock_number=f"{vehicle.stock_number}-A",
        vin=normalize_vin(trade_in.vin),
        year=trade_in.year,
        make=trade_in.make.strip(),
        model=trade_in.model.strip(),
        trim=(trade_in.trim or "").strip(),
        color=trade_in.color.strip(),
        mileage=trade_in.mileage,
        notes=f"Trade-in from sale of {vehicle.stock_number}",
        picked_up=False,
        date_added=utcnow(),
    )


class SoldConversionService:
    """Converts inventory vehicles into sold vehicles."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = EntityStore(session)

    async def convert(
        self,
        vehicle_id: int,
        sale: SaleInfo,
        trade_in: Optional[TradeInInfo] = None,
    ) -> ConversionResult:
        """
        Sell an inventory vehicle.

        Args:
            vehicle_id: Inventory id; the sold record keeps it
            sale: Sale details, merged into the customer sub-record
            trade_in: Optional trade-in captured with the sale

        Returns:
            ConversionResult with the sold vehicle id and the new trade-in id

        Raises:
            ValidationError: Sale or trade-in fields missing (nothing written)
            NotFoundError: No such inventory vehicle, including when it was
                already converted
        """
        validate_sale(sale)
        if trade_in is not None:
            validate_trade_in(trade_in)

        async with self.store.transaction():
            vehicle = await self.store.require(EntityKind.INVENTORY, vehicle_id)
            if vehicle.status is VehicleStatus.SOLD:
                raise IllegalTransitionError(
                    vehicle.status.value, VehicleStatus.SOLD.value, "Vehicle is already sold"
                )

            trade_in_id = None
            if trade_in is not None:
                record = await self.store.put(EntityKind.TRADE_INS, build_trade_in(vehicle, trade_in))
                trade_in_id = record.id

            sold = SoldVehicle(id=vehicle.id, **{name: getattr(vehicle, name) for name in COPIED_FIELDS})
            sold.customer = merge_sale_into_customer(vehicle.customer, sale)
            if trade_in_id is not None:
                sold.trade_in_id = trade_in_id

            try:
                await self.store.put(EntityKind.SOLD_VEHICLES, sold)
            except IntegrityError:
                # A concurrent conversion of the same vehicle got there first
                raise NotFoundError("Vehicle", vehicle_id)

            if await self.store.delete(EntityKind.INVENTORY, vehicle_id) != 1:
                raise NotFoundError("Vehicle", vehicle_id)

            result = ConversionResult(sold_vehicle_id=sold.id, trade_in_id=trade_in_id)

        logger.info(
            "Vehicle %s sold (trade-in: %s)", result.sold_vehicle_id, result.trade_in_id
        )
        return result
