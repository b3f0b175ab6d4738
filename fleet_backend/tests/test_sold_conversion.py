"""
Sold-conversion tests.

Atomicity, idempotence, and what a concurrent reader can observe while a
conversion is in flight.
"""

from datetime import date

import pytest
from sqlalchemy import select

from fleet_backend.app.core.exceptions import IllegalTransitionError, NotFoundError, ValidationError
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.sold_vehicle import SoldVehicle
from fleet_backend.app.models.trade_in import TradeIn
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.vehicle import SaleInfo, TradeInInfo
from fleet_backend.app.services.entity_store import EntityStore
from fleet_backend.app.services.sold_conversion import SoldConversionService, merge_sale_into_customer
from fleet_backend.app.services.status_engine import apply_plan, plan_transition

VIN = "1HGBH41JXMN109186"
TRADE_VIN = "JF2SJAEC5JH512345"

SALE = SaleInfo(
    sale_amount=25000,
    sale_date=date(2024, 1, 5),
    payment_method="ACH",
    payment_reference="REF1",
)


async def seed_vehicle(session, vin=VIN, status=VehicleStatus.IN_TRANSIT, **overrides):
    store = EntityStore(session)
    values = dict(
        id=await store.next_vehicle_id(),
        stock_number=f"CD{vin[-5:]}",
        vin=vin,
        year=2023,
        make="Subaru",
        model="Outback",
        color="Magnetite Gray",
        fleet_company="Acme Fleet",
        status=status,
        date_added=utcnow(),
        customer={"name": "Acme Fleet", "phone": "555-0100"},
    )
    values.update(overrides)
    vehicle = Vehicle(**values)
    session.add(vehicle)
    await session.commit()
    return vehicle.id


async def counts(session):
    store = EntityStore(session)
    return (
        await store.count(EntityKind.INVENTORY),
        await store.count(EntityKind.SOLD_VEHICLES),
        await store.count(EntityKind.TRADE_INS),
    )


@pytest.mark.asyncio
async def test_transition_then_sale(db_session):
    """in-transit -> pdi stamps inStockDate; the sale then moves the vehicle to sold."""
    vehicle_id = await seed_vehicle(db_session)
    store = EntityStore(db_session)

    async with store.transaction():
        vehicle = await store.require(EntityKind.INVENTORY, vehicle_id)
        apply_plan(vehicle, plan_transition(vehicle, VehicleStatus.PDI))
    assert vehicle.status is VehicleStatus.PDI
    assert vehicle.in_stock_date is not None

    result = await SoldConversionService(db_session).convert(vehicle_id, SALE)

    assert result.sold_vehicle_id == vehicle_id
    assert result.trade_in_id is None
    assert await counts(db_session) == (0, 1, 0)

    sold = (await db_session.execute(select(SoldVehicle))).scalar_one()
    assert sold.status is VehicleStatus.SOLD
    assert sold.customer["saleAmount"] == 25000
    assert sold.customer["saleDate"] == "2024-01-05"
    assert sold.in_stock_date is not None

    remaining = await db_session.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
    assert remaining.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_sale_with_trade_in(db_session):
    vehicle_id = await seed_vehicle(db_session)
    sale = SALE.model_copy(update={"customer_name": "Jordan Lee", "notes": "Fleet renewal"})
    trade_in = TradeInInfo(vin=TRADE_VIN.lower(), year=2018, make="Subaru", model="Forester", color="White", mileage=88000)

    result = await SoldConversionService(db_session).convert(vehicle_id, sale, trade_in)

    assert await counts(db_session) == (0, 1, 1)
    record = (await db_session.execute(select(TradeIn))).scalar_one()
    assert record.id == result.trade_in_id
    assert record.vin == TRADE_VIN
    assert record.stock_number == f"CD{VIN[-5:]}-A"
    assert record.notes == f"Trade-in from sale of CD{VIN[-5:]}"
    assert record.picked_up is False

    sold = (await db_session.execute(select(SoldVehicle))).scalar_one()
    assert sold.trade_in_id == result.trade_in_id
    assert sold.customer["name"] == "Jordan Lee"
    assert sold.customer["phone"] == "555-0100"
    assert sold.customer["notes"] == "Fleet renewal"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"sale_amount": None},
    {"sale_amount": 0},
    {"sale_date": None},
    {"payment_method": " "},
    {"payment_reference": None},
])
async def test_incomplete_sale_writes_nothing(db_session, overrides):
    vehicle_id = await seed_vehicle(db_session)
    sale = SALE.model_copy(update=overrides)

    with pytest.raises(ValidationError):
        await SoldConversionService(db_session).convert(vehicle_id, sale)

    assert await counts(db_session) == (1, 0, 0)


@pytest.mark.asyncio
async def test_incomplete_trade_in_writes_nothing(db_session):
    vehicle_id = await seed_vehicle(db_session)
    trade_in = TradeInInfo(vin=TRADE_VIN, year=2018, make="Subaru", model="Forester")

    with pytest.raises(ValidationError) as exc_info:
        await SoldConversionService(db_session).convert(vehicle_id, SALE, trade_in)

    assert exc_info.value.details["fields"] == ["color"]
    assert await counts(db_session) == (1, 0, 0)


@pytest.mark.asyncio
async def test_unknown_vehicle(db_session):
    with pytest.raises(NotFoundError):
        await SoldConversionService(db_session).convert(4242, SALE)


@pytest.mark.asyncio
async def test_vehicle_marked_sold_in_inventory_is_rejected(db_session):
    vehicle_id = await seed_vehicle(db_session, status=VehicleStatus.SOLD)

    with pytest.raises(IllegalTransitionError):
        await SoldConversionService(db_session).convert(vehicle_id, SALE)

    assert await counts(db_session) == (1, 0, 0)


@pytest.mark.asyncio
async def test_second_conversion_is_not_found(db_session):
    vehicle_id = await seed_vehicle(db_session)
    trade_in = TradeInInfo(vin=TRADE_VIN, year=2018, make="Subaru", model="Forester", color="White")
    service = SoldConversionService(db_session)
    await service.convert(vehicle_id, SALE, trade_in)

    with pytest.raises(NotFoundError):
        await service.convert(vehicle_id, SALE, trade_in)

    assert await counts(db_session) == (0, 1, 1)


@pytest.mark.asyncio
async def test_failure_mid_conversion_rolls_back(db_session, mocker):
    """If the inventory delete fails, the sold record and trade-in vanish too."""
    vehicle_id = await seed_vehicle(db_session)
    mocker.patch.object(EntityStore, "delete", side_effect=RuntimeError("disk I/O error"))
    trade_in = TradeInInfo(vin=TRADE_VIN, year=2018, make="Subaru", model="Forester", color="White")

    with pytest.raises(RuntimeError):
        await SoldConversionService(db_session).convert(vehicle_id, SALE, trade_in)

    assert await counts(db_session) == (1, 0, 0)


@pytest.mark.asyncio
async def test_reader_sees_all_or_nothing(file_session_factory, monkeypatch):
    """A reader between the conversion's writes still sees the pre-sale state."""
    async with file_session_factory() as session:
        vehicle_id = await seed_vehicle(session)

    observed = []
    original_delete = EntityStore.delete

    async def delete_after_peek(self, kind, record_id):
        async with file_session_factory() as reader:
            observed.append(await counts(reader))
        return await original_delete(self, kind, record_id)

    monkeypatch.setattr(EntityStore, "delete", delete_after_peek)
    trade_in = TradeInInfo(vin=TRADE_VIN, year=2018, make="Subaru", model="Forester", color="White")

    async with file_session_factory() as session:
        await SoldConversionService(session).convert(vehicle_id, SALE, trade_in)

    monkeypatch.undo()
    assert observed == [(1, 0, 0)]
    async with file_session_factory() as reader:
        assert await counts(reader) == (0, 1, 1)


@pytest.mark.asyncio
async def test_new_inventory_never_reuses_a_sold_id(db_session):
    vehicle_id = await seed_vehicle(db_session)
    await SoldConversionService(db_session).convert(vehicle_id, SALE)

    next_id = await seed_vehicle(db_session, vin="4S4BSANC5K3123456")

    assert next_id > vehicle_id


@pytest.mark.asyncio
async def test_deleting_the_newest_vehicle_does_not_free_its_id(db_session):
    first_id = await seed_vehicle(db_session)
    newest_id = await seed_vehicle(db_session, vin="4S4BSANC5K3123456")
    store = EntityStore(db_session)
    async with store.transaction():
        await store.delete(EntityKind.INVENTORY, newest_id)

    next_id = await seed_vehicle(db_session, vin="4S4BSANC5K3654321")

    assert next_id > newest_id > first_id


@pytest.mark.asyncio
async def test_id_counter_starts_after_existing_rows(db_session):
    db_session.add(Vehicle(
        id=40, stock_number="CD00040", vin="4S4BSANC5K3100040", year=2019, make="Subaru",
        model="Outback", status=VehicleStatus.IN_STOCK, date_added=utcnow()
    ))
    await db_session.commit()

    store = EntityStore(db_session)
    async with store.transaction():
        issued = [await store.next_vehicle_id(), await store.next_vehicle_id()]

    assert issued == [41, 42]


def test_merge_keeps_existing_contact_fields():
    merged = merge_sale_into_customer({"name": "Acme", "email": "ops@acme.test", "notes": "call first"}, SALE)

    assert merged == {
        "name": "Acme",
        "email": "ops@acme.test",
        "notes": "call first",
        "saleAmount": 25000,
        "saleDate": "2024-01-05",
        "paymentMethod": "ACH",
        "paymentReference": "REF1",
    }
