"""
Tire inventory tests.

Admin-only CRUD, mounting on trucks and trailers, wear readings and the
history trail each change leaves behind.
"""

import pytest

from backend.app.services.audit import AuditAction, get_audit_trail


async def _create_tire(client, headers, serial="TIR-001", **extra):
    payload = {"serial_number": serial, "brand": "Michelin", "size": "315/80R22.5", "tread_depth": 16}
    payload.update(extra)
    return await client.post("/v1/tires", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_tire_crud(client, admin_headers):
    response = await _create_tire(client, admin_headers)
    assert response.status_code == 201
    data = response.json()
    tire_id = data["id"]
    assert data["status"] == "in_stock"
    assert data["assigned_to_type"] is None
    assert [(h["action"], h["note"], h["tread_depth"]) for h in data["history"]] == [
        ("created", "Tire created", 16)
    ]

    response = await _create_tire(client, admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_DUPLICATE_001"

    response = await client.put(
        f"/v1/tires/{tire_id}", json={"brand": "Bridgestone", "notes": "spare"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["brand"] == "Bridgestone"
    assert response.json()["notes"] == "spare"

    response = await client.get(f"/v1/tires/{tire_id}", headers=admin_headers)
    assert response.json()["serial_number"] == "TIR-001"

    response = await client.delete(f"/v1/tires/{tire_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"tire_id": tire_id, "deleted": True}

    response = await client.get(f"/v1/tires/{tire_id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tires_are_admin_only(client, admin_headers, driver_headers):
    tire_id = (await _create_tire(client, admin_headers)).json()["id"]

    assert (await client.get("/v1/tires", headers=driver_headers)).status_code == 403
    assert (await _create_tire(client, driver_headers, serial="TIR-002")).status_code == 403
    response = await client.patch(f"/v1/tires/{tire_id}/wear", json={"tread_depth": 3}, headers=driver_headers)
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_mount_and_unmount(client, db_session, admin_headers, truck_id, trailer_id):
    tire_id = (await _create_tire(client, admin_headers)).json()["id"]

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "truck", "assigned_to_id": truck_id, "position": "front-left",
              "mileage_at_install": 120000},
        headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "mounted"
    assert data["assigned_to_type"] == "truck"
    assert data["assigned_to_id"] == truck_id
    assert data["position"] == "front-left"
    assert data["mileage_at_install"] == 120000
    assert data["history"][-1]["note"] == "Mounted to truck"
    assert data["history"][-1]["mileage"] == 120000

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "trailer", "assigned_to_id": trailer_id, "position": "rear-right"},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["assigned_to_type"] == "trailer"

    response = await client.get("/v1/tires?status=mounted", headers=admin_headers)
    assert response.json()["total"] == 1

    response = await client.patch(f"/v1/tires/{tire_id}/unassign", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "in_stock"
    assert data["assigned_to_type"] is None
    assert data["assigned_to_id"] is None
    assert data["position"] is None
    assert data["mileage_at_install"] is None
    assert [h["action"] for h in data["history"]] == ["created", "assigned", "assigned", "unassigned"]

    response = await client.patch(f"/v1/tires/{tire_id}/unassign", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    trail = await get_audit_trail(db_session, entity_type="tire", entity_id=tire_id)
    assert [entry.action for entry in trail] == [
        AuditAction.TIRE_UNASSIGNED, AuditAction.TIRE_ASSIGNED, AuditAction.TIRE_ASSIGNED, AuditAction.TIRE_CREATED
    ]


@pytest.mark.asyncio
async def test_assign_requires_existing_vehicle(client, admin_headers):
    tire_id = (await _create_tire(client, admin_headers)).json()["id"]

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "truck", "assigned_to_id": 9999, "position": "front-left"},
        headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "trailer", "assigned_to_id": 9999, "position": "front-left"},
        headers=admin_headers
    )
    assert response.status_code == 404

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "bus", "assigned_to_id": 1, "position": "front-left"},
        headers=admin_headers
    )
    assert response.status_code == 422

    response = await client.get(f"/v1/tires/{tire_id}", headers=admin_headers)
    assert response.json()["status"] == "in_stock"
    assert len(response.json()["history"]) == 1


@pytest.mark.asyncio
async def test_wear_and_retirement(client, admin_headers, truck_id):
    tire_id = (await _create_tire(client, admin_headers)).json()["id"]
    await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "truck", "assigned_to_id": truck_id, "position": "rear-left"},
        headers=admin_headers
    )

    response = await client.patch(
        f"/v1/tires/{tire_id}/wear",
        json={"tread_depth": 9.5, "mileage": 140000, "note": "uneven wear"},
        headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["tread_depth"] == 9.5
    assert data["status"] == "mounted"
    assert data["history"][-1]["action"] == "wear"
    assert data["history"][-1]["note"] == "uneven wear"
    assert data["history"][-1]["mileage"] == 140000

    response = await client.patch(
        f"/v1/tires/{tire_id}/wear", json={"tread_depth": 1.5, "status": "retired"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "retired"
    assert data["assigned_to_id"] is None
    assert [h["action"] for h in data["history"][-2:]] == ["wear", "status"]

    response = await client.patch(
        f"/v1/tires/{tire_id}/assign",
        json={"assigned_to_type": "truck", "assigned_to_id": truck_id, "position": "rear-left"},
        headers=admin_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION_001"
    assert body["message"] == "Retired tire cannot be assigned"

    response = await client.patch(f"/v1/tires/{tire_id}/wear", json={"status": "mounted"}, headers=admin_headers)
    assert response.status_code == 422

    response = await client.get("/v1/tires?status=retired", headers=admin_headers)
    assert [t["id"] for t in response.json()["tires"]] == [tire_id]
