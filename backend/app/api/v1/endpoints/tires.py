"""
Tire Inventory API Endpoints (Admin only).

Tires move between ``in_stock``, ``mounted`` and ``retired``. Every change
of mount or condition appends a history entry to the tire; a retired tire
can no longer be mounted.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.core.exceptions import DuplicateResourceError, ResourceNotFoundError, ValidationFailedError
from backend.app.models.tire import Tire, TireHistory
from backend.app.models.enums import AssetType, TireEvent, TireStatus
from backend.app.schemas.tire import (
    TireCreate, TireUpdate, TireAssign, TireWear, TireResponse, TireListResponse
)
from backend.app.services import vehicle_registry
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/tires", tags=["Tires"])

CLEARABLE_FIELDS = {"brand", "size", "notes"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _load_tire(db: AsyncSession, tire_id: int) -> Optional[Tire]:
    """Fetch a tire with its history, replacing any stale session copy."""
    query = select(Tire).where(Tire.id == tire_id).execution_options(populate_existing=True)
    return (await db.execute(query)).scalar_one_or_none()


async def _get_tire_or_404(db: AsyncSession, tire_id: int) -> Tire:
    tire = await _load_tire(db, tire_id)
    if not tire:
        raise ResourceNotFoundError("Tire", tire_id)
    return tire


async def _ensure_serial_free(db: AsyncSession, serial_number: str, exclude_id: int = None):
    query = select(func.count(Tire.id)).where(Tire.serial_number == serial_number)
    if exclude_id is not None:
        query = query.where(Tire.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise DuplicateResourceError("Tire", "serial_number", serial_number)


async def _commit_or_duplicate(db: AsyncSession, serial_number: str):
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateResourceError("Tire", "serial_number", serial_number)


@router.get("", response_model=TireListResponse)
async def list_tires(
    status_filter: Optional[TireStatus] = Query(None, alias="status", description="Filter by status"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List tires, newest first."""
    query = select(Tire).order_by(Tire.created_at.desc(), Tire.id.desc())
    if status_filter is not None:
        query = query.where(Tire.status == status_filter)
    tires = (await db.execute(query)).scalars().all()
    return TireListResponse(
        tires=[TireResponse.model_validate(t) for t in tires],
        total=len(tires)
    )


@router.get("/{tire_id}", response_model=TireResponse)
async def get_tire(
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    tire = await _get_tire_or_404(db, tire_id)
    return TireResponse.model_validate(tire)


@router.post("", response_model=TireResponse, status_code=status.HTTP_201_CREATED)
async def create_tire(
    tire_data: TireCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add a tire to stock."""
    await _ensure_serial_free(db, tire_data.serial_number)

    tire = Tire(
        **tire_data.model_dump(),
        status=TireStatus.IN_STOCK,
        history=[TireHistory(
            action=TireEvent.CREATED, note="Tire created", tread_depth=tire_data.tread_depth, timestamp=_now()
        )]
    )
    db.add(tire)
    await db.flush()
    tire_id = tire.id

    log_event(
        db,
        AuditAction.TIRE_CREATED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata={"serial_number": tire_data.serial_number}
    )
    await _commit_or_duplicate(db, tire_data.serial_number)

    return TireResponse.model_validate(await _load_tire(db, tire_id))


@router.put("/{tire_id}", response_model=TireResponse)
async def update_tire(
    update_data: TireUpdate,
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Edit descriptive fields. Status and mount change through assign/unassign/wear."""
    tire = await _get_tire_or_404(db, tire_id)

    changes = update_data.model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k in CLEARABLE_FIELDS}

    if changes.get("serial_number") and changes["serial_number"] != tire.serial_number:
        await _ensure_serial_free(db, changes["serial_number"], exclude_id=tire_id)

    for field, value in changes.items():
        setattr(tire, field, value)
    serial_number = tire.serial_number

    log_event(
        db,
        AuditAction.TIRE_UPDATED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata={"fields": sorted(changes)}
    )
    await _commit_or_duplicate(db, serial_number)

    return TireResponse.model_validate(await _load_tire(db, tire_id))


@router.patch("/{tire_id}/assign", response_model=TireResponse)
async def assign_tire(
    assignment: TireAssign,
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Mount a tire on a truck or trailer.

    A mounted tire may be moved to another position or vehicle; a retired
    tire is refused.

    Raises:
        ValidationFailedError: Tire is retired
        ResourceNotFoundError: Tire or target vehicle does not exist
    """
    tire = await _get_tire_or_404(db, tire_id)
    if tire.status == TireStatus.RETIRED:
        raise ValidationFailedError(
            [{"field": "status", "reason": "retired tire cannot be assigned"}],
            message="Retired tire cannot be assigned"
        )

    target_type = AssetType(assignment.assigned_to_type)
    if target_type == AssetType.TRUCK:
        exists = await vehicle_registry.truck_exists(db, assignment.assigned_to_id)
    else:
        exists = await vehicle_registry.trailer_exists(db, assignment.assigned_to_id)
    if not exists:
        raise ResourceNotFoundError(target_type.value.capitalize(), assignment.assigned_to_id)

    tire.assigned_to_type = target_type
    tire.assigned_to_id = assignment.assigned_to_id
    tire.position = assignment.position
    if assignment.mileage_at_install is not None:
        tire.mileage_at_install = assignment.mileage_at_install
    tire.status = TireStatus.MOUNTED
    tire.history.append(TireHistory(
        action=TireEvent.ASSIGNED,
        note=f"Mounted to {target_type.value}",
        tread_depth=tire.tread_depth,
        mileage=assignment.mileage_at_install,
        timestamp=_now()
    ))

    log_event(
        db,
        AuditAction.TIRE_ASSIGNED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata={
            "assigned_to_type": target_type.value,
            "assigned_to_id": assignment.assigned_to_id,
            "position": assignment.position
        }
    )
    await db.commit()

    return TireResponse.model_validate(await _load_tire(db, tire_id))


@router.patch("/{tire_id}/unassign", response_model=TireResponse)
async def unassign_tire(
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Take a mounted tire back into stock."""
    tire = await _get_tire_or_404(db, tire_id)
    if tire.status != TireStatus.MOUNTED:
        raise ValidationFailedError(
            [{"field": "status", "reason": f"tire is {tire.status.value}, not mounted"}],
            message="Only a mounted tire can be unassigned"
        )

    previous = {"assigned_to_type": tire.assigned_to_type.value, "assigned_to_id": tire.assigned_to_id}
    tire.assigned_to_type = None
    tire.assigned_to_id = None
    tire.position = None
    tire.mileage_at_install = None
    tire.status = TireStatus.IN_STOCK
    tire.history.append(TireHistory(
        action=TireEvent.UNASSIGNED, note="Unassigned from vehicle", tread_depth=tire.tread_depth, timestamp=_now()
    ))

    log_event(
        db,
        AuditAction.TIRE_UNASSIGNED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata=previous
    )
    await db.commit()

    return TireResponse.model_validate(await _load_tire(db, tire_id))


@router.patch("/{tire_id}/wear", response_model=TireResponse)
async def record_tire_wear(
    wear: TireWear,
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a wear reading, optionally retiring the tire.

    Retiring a mounted tire also takes it off its vehicle.
    """
    tire = await _get_tire_or_404(db, tire_id)

    if wear.tread_depth is not None:
        tire.tread_depth = wear.tread_depth
    tire.history.append(TireHistory(
        action=TireEvent.WEAR,
        note=wear.note,
        tread_depth=tire.tread_depth,
        mileage=wear.mileage,
        timestamp=_now()
    ))

    retired = wear.status == TireStatus.RETIRED.value and tire.status != TireStatus.RETIRED
    if retired:
        tire.assigned_to_type = None
        tire.assigned_to_id = None
        tire.position = None
        tire.mileage_at_install = None
        tire.status = TireStatus.RETIRED
        tire.history.append(TireHistory(
            action=TireEvent.STATUS, note="Tire retired", tread_depth=tire.tread_depth, timestamp=_now()
        ))

    log_event(
        db,
        AuditAction.TIRE_WEAR_RECORDED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata={"tread_depth": tire.tread_depth, "mileage": wear.mileage, "retired": retired}
    )
    await db.commit()

    return TireResponse.model_validate(await _load_tire(db, tire_id))


@router.delete("/{tire_id}")
async def delete_tire(
    tire_id: int = Path(..., description="Tire ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    tire = await _get_tire_or_404(db, tire_id)

    serial_number = tire.serial_number
    await db.delete(tire)
    log_event(
        db,
        AuditAction.TIRE_DELETED,
        actor=current_user,
        entity_type="tire",
        entity_id=tire_id,
        metadata={"serial_number": serial_number}
    )
    await db.commit()

    return {"tire_id": tire_id, "deleted": True}
