"""
Journey API tests.

End-to-end over HTTP: status codes and the error envelope produced by the
global exception handlers.
"""

import pytest

from backend.app.models.enums import VehicleStatus
from backend.app.models.truck import Truck


async def _create(client, headers, driver_id, truck_id, **extra):
    payload = {"driver_id": driver_id, "truck_id": truck_id, "origin": "Lisbon", "destination": "Porto"}
    payload.update(extra)
    return await client.post("/v1/journeys", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "ok"


@pytest.mark.asyncio
async def test_requires_bearer_token(client):
    response = await client.get("/v1/journeys")
    assert response.status_code in (401, 403)

    response = await client.get("/v1/journeys", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


@pytest.mark.asyncio
async def test_create_and_read_journey(client, admin_headers, driver, driver_headers, truck_id):
    response = await _create(client, admin_headers, driver["user_id"], truck_id)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "to_do"
    assert data["driver"]["email"] == "driver1@test.com"
    assert data["truck"]["license_plate"] == "TRK-100"
    assert len(data["logs"]) == 1
    assert response.headers.get("X-Correlation-ID")

    response = await client.get(f"/v1/journeys/{data['id']}", headers=driver_headers)
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_driver_cannot_create(client, driver, driver_headers, truck_id):
    response = await _create(client, driver_headers, driver["user_id"], truck_id)
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_create_validation_and_references(client, admin, admin_headers, driver, truck_id):
    response = await client.post("/v1/journeys", json={"origin": "Lisbon"}, headers=admin_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION_001"
    assert {e["field"] for e in body["details"]["errors"]} == {"driver_id", "truck_id", "destination"}

    response = await _create(client, admin_headers, driver["user_id"], 9999)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await _create(client, admin_headers, admin["user_id"], truck_id)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_002"


@pytest.mark.asyncio
async def test_status_flow_over_http(client, admin_headers, driver, driver_headers, truck_id, fetch):
    journey_id = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]

    response = await client.patch(
        f"/v1/journeys/{journey_id}/status", json={"status": "finished"}, headers=driver_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_TRANSITION_001"
    assert body["details"] == {"current_status": "to_do", "requested_status": "finished"}

    response = await client.patch(
        f"/v1/journeys/{journey_id}/status", json={"status": "in_progress"}, headers=driver_headers
    )
    assert response.status_code == 200
    assert response.json()["start_date"] is not None
    assert (await fetch(Truck, truck_id)).status == VehicleStatus.IN_USE

    response = await client.patch(
        f"/v1/journeys/{journey_id}/status",
        json={"status": "finished", "note": "Unloaded"},
        headers=driver_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "finished"
    assert data["logs"][-1]["note"] == "Unloaded"


@pytest.mark.asyncio
async def test_double_booking_over_http(client, admin_headers, driver, driver_headers, other_driver,
                                        other_driver_headers, truck_id):
    first = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]
    second = (await _create(client, admin_headers, other_driver["user_id"], truck_id)).json()["id"]

    response = await client.patch(f"/v1/journeys/{first}/status", json={"status": "in_progress"},
                                  headers=driver_headers)
    assert response.status_code == 200

    response = await client.patch(f"/v1/journeys/{second}/status", json={"status": "in_progress"},
                                  headers=other_driver_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRUCK_001"


@pytest.mark.asyncio
async def test_foreign_driver_gets_403(client, admin_headers, driver, other_driver_headers, truck_id):
    journey_id = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]

    response = await client.get(f"/v1/journeys/{journey_id}", headers=other_driver_headers)
    assert response.status_code == 403

    response = await client.patch(f"/v1/journeys/{journey_id}/tracking", json={"remarks": "hi"},
                                  headers=other_driver_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_tracking_over_http(client, admin_headers, driver, driver_headers, truck_id):
    journey_id = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]

    response = await client.patch(
        f"/v1/journeys/{journey_id}/tracking",
        json={"mileage_start": 100, "mileage_end": 100, "fuel_volume": 1000.01},
        headers=driver_headers
    )
    assert response.status_code == 400
    errors = response.json()["details"]["errors"]
    assert sorted(e["field"] for e in errors) == ["fuel_volume", "mileage_end"]

    response = await client.patch(
        f"/v1/journeys/{journey_id}/tracking",
        json={"mileage_start": 100, "fuel_volume": 1000, "tire_status": "worn front-left"},
        headers=driver_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["mileage_start"] == 100
    assert data["mileage_end"] is None
    assert data["fuel_volume"] == 1000
    assert data["tire_status"] == "worn front-left"


@pytest.mark.asyncio
async def test_list_journeys_filters(client, admin_headers, driver, driver_headers, other_driver,
                                     make_truck):
    truck_a = await make_truck("TRK-A")
    truck_b = await make_truck("TRK-B")
    await _create(client, admin_headers, driver["user_id"], truck_a)
    await _create(client, admin_headers, other_driver["user_id"], truck_b)

    response = await client.get("/v1/journeys", headers=admin_headers)
    assert response.json()["total"] == 2

    response = await client.get("/v1/journeys", headers=driver_headers)
    body = response.json()
    assert body["total"] == 1
    assert body["journeys"][0]["driver_id"] == driver["user_id"]

    response = await client.get(f"/v1/journeys?truck_id={truck_b}&status=to_do", headers=admin_headers)
    assert response.json()["total"] == 1

    response = await client.get("/v1/journeys?status=finished", headers=admin_headers)
    assert response.json()["total"] == 0

    response = await client.get("/v1/journeys?status=bogus", headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_journey_over_http(client, admin_headers, driver, driver_headers, truck_id, fetch):
    journey_id = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]

    response = await client.delete(f"/v1/journeys/{journey_id}", headers=driver_headers)
    assert response.status_code == 403

    response = await client.delete(f"/v1/journeys/{journey_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"journey_id": journey_id, "deleted": True, "truck_status": "available"}
    assert (await fetch(Truck, truck_id)).status == VehicleStatus.AVAILABLE

    response = await client.delete(f"/v1/journeys/{journey_id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tracking_reports_type_and_range_errors_together(client, admin_headers, driver,
                                                               driver_headers, truck_id):
    journey_id = (await _create(client, admin_headers, driver["user_id"], truck_id)).json()["id"]

    response = await client.patch(
        f"/v1/journeys/{journey_id}/tracking",
        json={"mileage_start": "abc", "fuel_volume": 5000},
        headers=driver_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION_001"
    reasons = {e["field"]: e["reason"] for e in body["details"]["errors"]}
    assert reasons["mileage_start"] == "must be a number"
    assert sorted(reasons) == ["fuel_volume", "mileage_start"]

    response = await client.get(f"/v1/journeys/{journey_id}", headers=driver_headers)
    data = response.json()
    assert data["mileage_start"] is None
    assert data["fuel_volume"] is None
