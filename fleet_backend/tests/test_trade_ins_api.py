"""
Integration tests for the trade-in endpoints.
"""

import pytest

TRADE_IN = {
    "vin": "JF2SJAEC5JH300005",
    "year": 2018,
    "make": "Subaru",
    "model": "Forester",
    "color": "Blue",
    "mileage": 88000
}


@pytest.fixture
async def trade_in(client, auth_headers):
    response = await client.post("/v1/trade-ins", json=TRADE_IN, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_trade_in(trade_in):
    assert trade_in["vin"] == TRADE_IN["vin"]
    assert trade_in["pickedUp"] is False
    assert trade_in["pickedUpDate"] is None
    assert trade_in["notes"] == ""


@pytest.mark.asyncio
async def test_create_requires_color(client, auth_headers):
    payload = {k: v for k, v in TRADE_IN.items() if k != "color"}
    response = await client.post("/v1/trade-ins", json=payload, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_toggle_pickup_round_trip(client, auth_headers, trade_in):
    url = f"/v1/trade-ins/{trade_in['id']}/toggle-pickup"

    response = await client.post(url, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["pickedUp"] is True
    assert data["pickedUpDate"] is not None

    response = await client.post(url, headers=auth_headers)
    data = response.json()
    assert data["pickedUp"] is False
    assert data["pickedUpDate"] is None


@pytest.mark.asyncio
async def test_edit_ignores_pickup_state(client, auth_headers, trade_in):
    response = await client.put(f"/v1/trade-ins/{trade_in['id']}", json={
        "mileage": 90125,
        "notes": "Windshield chip",
        "pickedUp": True
    }, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["mileage"] == 90125
    assert data["notes"] == "Windshield chip"
    assert data["pickedUp"] is False


@pytest.mark.asyncio
async def test_list_enriched_with_sale(client, auth_headers, trade_in):
    vehicle = (await client.post("/v1/inventory", json={
        "vin": "4S4BSANC5K3100001", "year": 2019, "make": "Subaru", "model": "Outback",
        "fleetCompany": "Acme Fleet", "operationCompany": "Acme Ops"
    }, headers=auth_headers)).json()
    response = await client.post(f"/v1/inventory/{vehicle['id']}/mark-sold", json={
        "saleAmount": 31000,
        "saleDate": "2024-02-01",
        "paymentMethod": "Check",
        "paymentReference": "CHK-2231",
        "customerName": "Jordan Lee",
        "hasTradeIn": True,
        "tradeIn": {"vin": "JF1GPAA61G8200004", "year": 2016, "make": "Subaru", "model": "Impreza", "color": "Red"}
    }, headers=auth_headers)
    sale_trade_in_id = response.json()["tradeInId"]

    response = await client.get("/v1/trade-ins", headers=auth_headers)

    assert response.status_code == 200
    items = {item["id"]: item for item in response.json()["tradeIns"]}
    assert len(items) == 2
    assert items[sale_trade_in_id]["customerName"] == "Jordan Lee"
    assert items[sale_trade_in_id]["fleetCompany"] == "Acme Fleet"
    assert items[sale_trade_in_id]["operationCompany"] == "Acme Ops"
    assert items[trade_in["id"]]["customerName"] == ""
    assert items[trade_in["id"]]["fleetCompany"] is None


@pytest.mark.asyncio
async def test_delete_trade_in(client, auth_headers, trade_in):
    response = await client.delete(f"/v1/trade-ins/{trade_in['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.post(f"/v1/trade-ins/{trade_in['id']}/toggle-pickup", headers=auth_headers)
    assert response.status_code == 404
