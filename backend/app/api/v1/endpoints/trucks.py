"""
Truck API Endpoints.

Admins register and maintain trucks. Availability (``status``) is written
through the vehicle registry only; admins may toggle ``available`` /
``maintenance`` by hand, journey operations drive ``assigned`` / ``in_use``.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_admin, is_admin
from backend.app.core.exceptions import (
    DuplicateResourceError, InsufficientPermissionsError, ResourceInUseError, ResourceNotFoundError
)
from backend.app.core.locks import truck_locks
from backend.app.models.truck import Truck
from backend.app.models.journey import Journey
from backend.app.models.enums import VehicleStatus
from backend.app.schemas.vehicle import (
    TruckCreate, TruckUpdate, TruckTrackingUpdate, TruckResponse, TruckListResponse
)
from backend.app.services import vehicle_registry
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/trucks", tags=["Trucks"])

# Fields an update may reset to null
CLEARABLE_FIELDS = {"maintenance_due_date", "last_service_date", "notes"}


def _present_changes(update_data) -> dict:
    changes = update_data.model_dump(exclude_unset=True)
    return {k: v for k, v in changes.items() if v is not None or k in CLEARABLE_FIELDS}


async def _get_truck_or_404(db: AsyncSession, truck_id: int) -> Truck:
    truck = await vehicle_registry.find_truck(db, truck_id)
    if not truck:
        raise ResourceNotFoundError("Truck", truck_id)
    return truck


async def _ensure_plate_free(db: AsyncSession, license_plate: str, exclude_id: int = None):
    query = select(func.count(Truck.id)).where(Truck.license_plate == license_plate)
    if exclude_id is not None:
        query = query.where(Truck.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise DuplicateResourceError("Truck", "license_plate", license_plate)


async def _commit_or_duplicate(db: AsyncSession, license_plate: str):
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateResourceError("Truck", "license_plate", license_plate)


@router.get("", response_model=TruckListResponse)
async def list_trucks(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List all trucks, newest first."""
    result = await db.execute(select(Truck).order_by(Truck.created_at.desc(), Truck.id.desc()))
    trucks = result.scalars().all()
    return TruckListResponse(
        trucks=[TruckResponse.model_validate(t) for t in trucks],
        total=len(trucks)
    )


@router.get("/{truck_id}", response_model=TruckResponse)
async def get_truck(
    truck_id: int = Path(..., description="Truck ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    truck = await _get_truck_or_404(db, truck_id)
    return TruckResponse.model_validate(truck)


@router.post("", response_model=TruckResponse, status_code=status.HTTP_201_CREATED)
async def create_truck(
    truck_data: TruckCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Register a truck (Admin only). New trucks are ``available``."""
    await _ensure_plate_free(db, truck_data.license_plate)

    truck = Truck(**truck_data.model_dump(), status=VehicleStatus.AVAILABLE)
    db.add(truck)
    await db.flush()

    log_event(
        db,
        AuditAction.TRUCK_CREATED,
        actor=current_user,
        entity_type="truck",
        entity_id=truck.id,
        metadata={"license_plate": truck.license_plate}
    )
    await _commit_or_duplicate(db, truck_data.license_plate)
    await db.refresh(truck)

    return TruckResponse.model_validate(truck)


@router.put("/{truck_id}", response_model=TruckResponse)
async def update_truck(
    update_data: TruckUpdate,
    truck_id: int = Path(..., description="Truck ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a truck (Admin only).

    A manual ``status`` change is refused while a journey is in progress on the truck.
    """
    changes = _present_changes(update_data)

    async with truck_locks.hold(truck_id):
        truck = await _get_truck_or_404(db, truck_id)

        if changes.get("license_plate") and changes["license_plate"] != truck.license_plate:
            await _ensure_plate_free(db, changes["license_plate"], exclude_id=truck_id)

        # Status first: set_truck_status reloads the row
        new_status = changes.pop("status", None)
        if new_status is not None and VehicleStatus(new_status) != truck.status:
            if await vehicle_registry.has_active_journey(db, truck_id):
                raise ResourceInUseError(
                    "Truck", truck_id, f"Truck {truck_id} is on an in-progress journey; status cannot be changed"
                )
            truck = await vehicle_registry.set_truck_status(db, truck_id, VehicleStatus(new_status))

        for field, value in changes.items():
            setattr(truck, field, value)
        license_plate = truck.license_plate

        log_event(
            db,
            AuditAction.TRUCK_UPDATED,
            actor=current_user,
            entity_type="truck",
            entity_id=truck_id,
            metadata={"fields": sorted(changes), "status": new_status}
        )
        await _commit_or_duplicate(db, license_plate)
        await db.refresh(truck)

    return TruckResponse.model_validate(truck)


@router.patch("/{truck_id}/tracking", response_model=TruckResponse)
async def update_truck_tracking(
    update_data: TruckTrackingUpdate,
    truck_id: int = Path(..., description="Truck ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record truck condition (Admin, or a driver with an open journey on this truck).
    """
    truck = await _get_truck_or_404(db, truck_id)

    if not is_admin(current_user):
        open_count = (await db.execute(
            select(func.count(Journey.id)).where(
                Journey.truck_id == truck_id,
                Journey.driver_id == current_user["user_id"],
                Journey.status.in_(vehicle_registry.OPEN_JOURNEY_STATUSES)
            )
        )).scalar()
        if not open_count:
            raise InsufficientPermissionsError("Access denied. This truck is not on one of your open journeys.")

    changes = _present_changes(update_data)
    for field, value in changes.items():
        setattr(truck, field, value)

    log_event(
        db,
        AuditAction.TRUCK_TRACKING_UPDATED,
        actor=current_user,
        entity_type="truck",
        entity_id=truck_id,
        metadata={"fields": sorted(changes)}
    )
    await db.commit()
    await db.refresh(truck)

    return TruckResponse.model_validate(truck)


@router.delete("/{truck_id}")
async def delete_truck(
    truck_id: int = Path(..., description="Truck ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a truck (Admin only). Refused while open journeys reference it."""
    async with truck_locks.hold(truck_id):
        truck = await _get_truck_or_404(db, truck_id)

        open_count = await vehicle_registry.count_open_journeys(db, Journey.truck_id, truck_id)
        if open_count:
            raise ResourceInUseError("Truck", truck_id)

        finished_count = (await db.execute(
            select(func.count(Journey.id)).where(Journey.truck_id == truck_id)
        )).scalar()
        if finished_count:
            raise ResourceInUseError(
                "Truck", truck_id, f"Truck {truck_id} has journey history and cannot be deleted"
            )

        license_plate = truck.license_plate
        await db.delete(truck)
        log_event(
            db,
            AuditAction.TRUCK_DELETED,
            actor=current_user,
            entity_type="truck",
            entity_id=truck_id,
            metadata={"license_plate": license_plate}
        )
        await db.commit()

    return {"truck_id": truck_id, "deleted": True}
