"""
Vehicle registry tests: truck and trailer administration plus the
registry helpers journeys rely on.
"""

import pytest

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.enums import JourneyStatus, VehicleStatus
from backend.app.models.truck import Truck
from backend.app.services import vehicle_registry
from backend.app.services.journey_lifecycle import JourneyLifecycleService


class TestTruckStatusMapping:

    @pytest.mark.parametrize("journey_status, truck_status", [
        (JourneyStatus.TO_DO, VehicleStatus.ASSIGNED),
        (JourneyStatus.IN_PROGRESS, VehicleStatus.IN_USE),
        (JourneyStatus.FINISHED, VehicleStatus.AVAILABLE),
    ])
    def test_mapping(self, journey_status, truck_status):
        assert vehicle_registry.truck_status_for(journey_status) == truck_status


@pytest.mark.asyncio
async def test_set_truck_status_unknown_truck(db_session):
    with pytest.raises(ResourceNotFoundError):
        await vehicle_registry.set_truck_status(db_session, 9999, VehicleStatus.IN_USE)


@pytest.mark.asyncio
async def test_has_active_journey(db_session, driver, truck_id, make_journey):
    journey_id = await make_journey(driver["user_id"], truck_id)
    assert not await vehicle_registry.has_active_journey(db_session, truck_id)
    assert await vehicle_registry.has_active_journey(
        db_session, truck_id, statuses=vehicle_registry.OPEN_JOURNEY_STATUSES
    )

    await JourneyLifecycleService.transition_status(db_session, journey_id, driver, "in_progress")
    assert await vehicle_registry.has_active_journey(db_session, truck_id)
    assert not await vehicle_registry.has_active_journey(db_session, truck_id, excluding_journey_id=journey_id)


@pytest.mark.asyncio
async def test_truck_crud(client, admin_headers, driver_headers):
    payload = {"license_plate": "AB-12-CD", "model": "Scania R450", "capacity": 24000, "mileage": 150000}

    response = await client.post("/v1/trucks", json=payload, headers=driver_headers)
    assert response.status_code == 403

    response = await client.post("/v1/trucks", json=payload, headers=admin_headers)
    assert response.status_code == 201
    truck = response.json()
    assert truck["status"] == "available"
    assert truck["tire_status"] == "ok"

    response = await client.post("/v1/trucks", json=payload, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_DUPLICATE_001"

    response = await client.put(
        f"/v1/trucks/{truck['id']}",
        json={"status": "maintenance", "notes": "Brake check"},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "maintenance"
    assert response.json()["notes"] == "Brake check"

    response = await client.get("/v1/trucks", headers=driver_headers)
    assert response.json()["total"] == 1

    response = await client.delete(f"/v1/trucks/{truck['id']}", headers=admin_headers)
    assert response.status_code == 200
    response = await client.get(f"/v1/trucks/{truck['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_journey_statuses_cannot_be_set_by_hand(client, admin_headers, truck_id):
    response = await client.put(f"/v1/trucks/{truck_id}", json={"status": "in_use"}, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_truck_status_locked_while_in_progress(client, db_session, admin_headers, driver, truck_id,
                                                     make_journey, fetch):
    journey_id = await make_journey(driver["user_id"], truck_id)
    await JourneyLifecycleService.transition_status(db_session, journey_id, driver, "in_progress")

    response = await client.put(f"/v1/trucks/{truck_id}", json={"status": "maintenance"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_002"
    assert (await fetch(Truck, truck_id)).status == VehicleStatus.IN_USE

    response = await client.delete(f"/v1/trucks/{truck_id}", headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_truck_tracking_by_assigned_driver(client, driver, driver_headers, other_driver_headers,
                                                 truck_id, make_journey):
    await make_journey(driver["user_id"], truck_id)

    response = await client.patch(
        f"/v1/trucks/{truck_id}/tracking",
        json={"mileage": 152000, "fuel_level": 320, "tire_status": "rear tires worn"},
        headers=driver_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["mileage"] == 152000
    assert data["tire_status"] == "rear tires worn"

    response = await client.patch(
        f"/v1/trucks/{truck_id}/tracking", json={"mileage": 1}, headers=other_driver_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_trailer_tracking_by_assigned_driver(client, admin_headers, driver, driver_headers,
                                                   other_driver_headers, trailer_id, truck_id, make_journey):
    response = await client.patch(
        f"/v1/trailers/{trailer_id}/tracking", json={"mileage": 10}, headers=driver_headers
    )
    assert response.status_code == 403

    await make_journey(driver["user_id"], truck_id, trailer_id=trailer_id)

    response = await client.patch(
        f"/v1/trailers/{trailer_id}/tracking",
        json={"mileage": 48000, "tire_status": "left rear low", "notes": "checked at depot"},
        headers=driver_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["mileage"] == 48000
    assert data["tire_status"] == "left rear low"
    assert data["notes"] == "checked at depot"

    response = await client.patch(
        f"/v1/trailers/{trailer_id}/tracking", json={"notes": None}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["notes"] is None
    assert response.json()["mileage"] == 48000

    response = await client.patch(
        f"/v1/trailers/{trailer_id}/tracking", json={"mileage": 1}, headers=other_driver_headers
    )
    assert response.status_code == 403

    response = await client.patch("/v1/trailers/9999/tracking", json={"mileage": 1}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_trailer_crud_and_history_guard(client, admin_headers, driver, trailer_id, truck_id,
                                              make_journey):
    response = await client.post(
        "/v1/trailers", json={"license_plate": "TRL-200", "type": "Reefer"}, headers=admin_headers
    )
    assert response.status_code == 201
    spare_id = response.json()["id"]

    response = await client.put(f"/v1/trailers/{spare_id}", json={"capacity": 30000}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["capacity"] == 30000

    await make_journey(driver["user_id"], truck_id, trailer_id=trailer_id)
    response = await client.delete(f"/v1/trailers/{trailer_id}", headers=admin_headers)
    assert response.status_code == 409

    response = await client.delete(f"/v1/trailers/{spare_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/v1/trailers", headers=admin_headers)
    assert [t["license_plate"] for t in response.json()["trailers"]] == ["TRL-100"]


@pytest.mark.asyncio
async def test_user_directory(client, admin_headers, driver_headers):
    response = await client.post(
        "/v1/users", json={"name": "New Driver", "email": "New.Driver@Test.com"}, headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json()["role"] == "driver"
    assert response.json()["email"] == "new.driver@test.com"

    response = await client.post(
        "/v1/users", json={"name": "Dup", "email": "new.driver@test.com"}, headers=admin_headers
    )
    assert response.status_code == 409

    response = await client.get("/v1/users?role=driver", headers=admin_headers)
    assert response.json()["total"] == 2

    response = await client.get("/v1/users", headers=driver_headers)
    assert response.status_code == 403
