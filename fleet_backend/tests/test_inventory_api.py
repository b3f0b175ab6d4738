"""
Integration tests for the inventory endpoints.

Tests intake, corrective edits, status changes, sold-conversion over HTTP
and the authentication gate.
"""

import pytest
from datetime import datetime, timezone

from fleet_backend.app.core.config import settings
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.services.audit import AuditAction, get_audit_trail

# Note: Client and DB setup are in conftest.py

VIN = "1HGBH41JXMN109186"


@pytest.fixture
async def vehicle(client, auth_headers):
    """Create an in-transit vehicle and return its JSON."""
    response = await client.post("/v1/inventory", json={
        "vin": VIN.lower(),
        "year": 2021,
        "make": "Honda",
        "model": "Accord",
        "color": "Black",
        "fleetCompany": "Acme Fleet",
        "customer": {"name": "Acme Fleet", "phone": "555-0100"}
    }, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


# Authentication gate

@pytest.mark.asyncio
async def test_requires_token(client):
    response = await client.get("/v1/inventory")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_rejects_bad_token(client):
    response = await client.get("/v1/inventory", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


# Intake

@pytest.mark.asyncio
async def test_create_defaults(vehicle):
    assert vehicle["vin"] == VIN
    assert vehicle["stockNumber"] == "CD09186"
    assert vehicle["status"] == "in-transit"
    assert vehicle["inStockDate"] is None
    assert vehicle["dateAdded"] is not None
    assert vehicle["customer"] == {"name": "Acme Fleet", "phone": "555-0100"}


@pytest.mark.asyncio
async def test_create_on_lot_stamps_in_stock_date(client, auth_headers):
    response = await client.post("/v1/inventory", json={
        "stockNumber": "F1001",
        "vin": "4S4BSANC5K3100001",
        "year": 2019,
        "make": "Subaru",
        "model": "Outback",
        "status": "in-stock"
    }, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["stockNumber"] == "F1001"
    assert data["inStockDate"] is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"vin": "1HGBH41JXMN10918"},
    {"vin": "1HGBH41JXMN10918O"},
    {"year": 1800},
    {"status": "sold"},
    {"make": ""},
])
async def test_create_rejects_bad_input(client, auth_headers, overrides):
    payload = {"vin": VIN, "year": 2021, "make": "Honda", "model": "Accord"}
    payload.update(overrides)

    response = await client.post("/v1/inventory", json=payload, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_duplicate_vin_is_advisory_by_default(client, auth_headers, vehicle):
    response = await client.post("/v1/inventory", json={
        "vin": VIN, "year": 2021, "make": "Honda", "model": "Accord"
    }, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["id"] != vehicle["id"]


@pytest.mark.asyncio
async def test_duplicate_vin_conflict_when_enforced(client, auth_headers, vehicle, monkeypatch):
    monkeypatch.setattr(settings, "enforce_unique_vin", True)

    response = await client.post("/v1/inventory", json={
        "vin": VIN, "year": 2021, "make": "Honda", "model": "Accord"
    }, headers=auth_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_CONFLICT_001"
    assert body["details"]["existing_id"] == vehicle["id"]


@pytest.mark.asyncio
async def test_list_and_filter(client, auth_headers, vehicle):
    await client.post("/v1/inventory", json={
        "vin": "4S4BSANC5K3100001", "year": 2019, "make": "Subaru", "model": "Outback", "status": "pdi"
    }, headers=auth_headers)

    response = await client.get("/v1/inventory", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 2

    response = await client.get("/v1/inventory", params={"status": "pdi"}, headers=auth_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["vehicles"][0]["status"] == "pdi"


@pytest.mark.asyncio
async def test_get_missing_vehicle(client, auth_headers):
    response = await client.get("/v1/inventory/999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


# Edits

@pytest.mark.asyncio
async def test_edit_does_not_touch_status(client, auth_headers, vehicle):
    response = await client.put(f"/v1/inventory/{vehicle['id']}", json={
        "color": "Crystal White",
        "pickupNotes": "Keys in lockbox",
        "status": "pdi"
    }, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["color"] == "Crystal White"
    assert data["pickupNotes"] == "Keys in lockbox"
    assert data["status"] == "in-transit"
    assert data["make"] == "Honda"


@pytest.mark.asyncio
async def test_customer_update_merges(client, auth_headers, vehicle):
    response = await client.put(f"/v1/inventory/{vehicle['id']}/customer", json={
        "email": "fleet@acme.test"
    }, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["customer"] == {
        "name": "Acme Fleet", "phone": "555-0100", "email": "fleet@acme.test"
    }


@pytest.mark.asyncio
async def test_delete_vehicle(client, auth_headers, vehicle):
    response = await client.delete(f"/v1/inventory/{vehicle['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/v1/inventory/{vehicle['id']}", headers=auth_headers)
    assert response.status_code == 404


# Status changes

@pytest.mark.asyncio
async def test_status_flow(client, auth_headers, vehicle):
    url = f"/v1/inventory/{vehicle['id']}/status"

    response = await client.put(url, json={"status": "pdi"}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pdi"
    assert data["inStockDate"] is not None

    response = await client.put(url, json={"status": "pickup-scheduled", "pickupDate": "2024-03-10", "pickupTime": ""}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    response = await client.put(url, json={"status": "pickup-scheduled", "pickupDate": "2024-03-10", "pickupTime": "10:00"}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pickup-scheduled"
    assert data["pickupDate"] == "2024-03-10"
    assert data["pickupTime"] == "10:00"

    response = await client.put(url, json={"status": "pickup-scheduled", "pickupDate": "2024-03-12", "pickupTime": "10:00"}, headers=auth_headers)
    assert response.json()["pickupDate"] == "2024-03-12"

    response = await client.put(url, json={"status": "sold"}, headers=auth_headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_TRANSITION_001"
    assert body["details"] == {"current": "pickup-scheduled", "requested": "sold"}


@pytest.mark.asyncio
async def test_status_change_is_audited(client, auth_headers, vehicle, db_session):
    await client.put(f"/v1/inventory/{vehicle['id']}/status", json={"status": "in-stock"}, headers=auth_headers)

    trail = await get_audit_trail(db_session, entity_kind="inventory", entity_id=vehicle["id"])

    actions = [entry.action for entry in trail]
    assert AuditAction.VEHICLE_STATUS_CHANGED in actions
    assert AuditAction.VEHICLE_CREATED in actions
    changed = next(e for e in trail if e.action == AuditAction.VEHICLE_STATUS_CHANGED)
    assert changed.actor_username == "test_user"
    assert changed.meta_data == {"from": "in-transit", "to": "in-stock"}


@pytest.mark.asyncio
async def test_fix_in_transit_dates(client, auth_headers, db_session):
    db_session.add(Vehicle(
        id=1, stock_number="CD00001", vin="4S4BSANC5K3100001", year=2019, make="Subaru",
        model="Outback", status=VehicleStatus.IN_TRANSIT, in_stock_date=datetime(2024, 1, 3, tzinfo=timezone.utc)
    ))
    db_session.add(Vehicle(
        id=2, stock_number="CD00002", vin="4S4BSANC5K3100002", year=2019, make="Subaru",
        model="Outback", status=VehicleStatus.IN_STOCK, in_stock_date=datetime(2024, 1, 3, tzinfo=timezone.utc)
    ))
    await db_session.commit()

    response = await client.post("/v1/inventory/fix-intransit-dates", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["changes"] == 1
    response = await client.get("/v1/inventory/1", headers=auth_headers)
    assert response.json()["inStockDate"] is None
    response = await client.get("/v1/inventory/2", headers=auth_headers)
    assert response.json()["inStockDate"] is not None


# Sold-conversion

SALE = {
    "saleAmount": 25000,
    "saleDate": "2024-01-05",
    "paymentMethod": "ACH",
    "paymentReference": "REF1"
}


@pytest.mark.asyncio
async def test_mark_sold_without_trade_in(client, auth_headers, vehicle):
    response = await client.post(f"/v1/inventory/{vehicle['id']}/mark-sold", json=SALE, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["soldVehicleId"] == vehicle["id"]
    assert data["tradeInId"] is None

    response = await client.get(f"/v1/inventory/{vehicle['id']}", headers=auth_headers)
    assert response.status_code == 404

    response = await client.get(f"/v1/sold-vehicles/{vehicle['id']}", headers=auth_headers)
    sold = response.json()
    assert sold["status"] == "sold"
    assert sold["customer"]["saleAmount"] == 25000
    assert sold["customer"]["phone"] == "555-0100"

    response = await client.get("/v1/trade-ins", headers=auth_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_mark_sold_with_trade_in(client, auth_headers, vehicle):
    response = await client.post(f"/v1/inventory/{vehicle['id']}/mark-sold", json={
        **SALE,
        "customerName": "Jordan Lee",
        "hasTradeIn": True,
        "tradeIn": {
            "vin": "JF2SJAEC5JH300005", "year": "2018", "make": "Subaru",
            "model": "Forester", "color": "Blue", "mileage": ""
        }
    }, headers=auth_headers)

    assert response.status_code == 200
    trade_in_id = response.json()["tradeInId"]
    assert trade_in_id is not None

    response = await client.get(f"/v1/trade-ins/{trade_in_id}", headers=auth_headers)
    trade_in = response.json()
    assert trade_in["stockNumber"] == "CD09186-A"
    assert trade_in["mileage"] is None

    response = await client.get(f"/v1/sold-vehicles/{vehicle['id']}", headers=auth_headers)
    assert response.json()["tradeInId"] == trade_in_id


@pytest.mark.asyncio
async def test_mark_sold_twice(client, auth_headers, vehicle):
    url = f"/v1/inventory/{vehicle['id']}/mark-sold"
    assert (await client.post(url, json=SALE, headers=auth_headers)).status_code == 200

    response = await client.post(url, json=SALE, headers=auth_headers)

    assert response.status_code == 404
    response = await client.get("/v1/sold-vehicles", headers=auth_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {**SALE, "saleAmount": ""},
    {**SALE, "paymentReference": ""},
    {**SALE, "hasTradeIn": True},
    {**SALE, "hasTradeIn": True, "tradeIn": {"vin": "JF2SJAEC5JH300005", "year": 2018}},
])
async def test_mark_sold_incomplete(client, auth_headers, vehicle, payload):
    response = await client.post(f"/v1/inventory/{vehicle['id']}/mark-sold", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"
    response = await client.get(f"/v1/inventory/{vehicle['id']}", headers=auth_headers)
    assert response.status_code == 200
