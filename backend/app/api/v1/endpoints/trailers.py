"""
Trailer API Endpoints.

Reads for any authenticated user, mutations for admins. Condition data may
also be recorded by a driver whose open journey uses the trailer.
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
from backend.app.models.trailer import Trailer
from backend.app.models.journey import Journey
from backend.app.models.enums import VehicleStatus
from backend.app.schemas.vehicle import (
    TrailerCreate, TrailerUpdate, TrailerTrackingUpdate, TrailerResponse, TrailerListResponse
)
from backend.app.services import vehicle_registry
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/trailers", tags=["Trailers"])

CLEARABLE_FIELDS = {"maintenance_due_date", "last_service_date", "notes"}


async def _get_trailer_or_404(db: AsyncSession, trailer_id: int) -> Trailer:
    trailer = await vehicle_registry.find_trailer(db, trailer_id)
    if not trailer:
        raise ResourceNotFoundError("Trailer", trailer_id)
    return trailer


async def _ensure_plate_free(db: AsyncSession, license_plate: str, exclude_id: int = None):
    query = select(func.count(Trailer.id)).where(Trailer.license_plate == license_plate)
    if exclude_id is not None:
        query = query.where(Trailer.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise DuplicateResourceError("Trailer", "license_plate", license_plate)


@router.get("", response_model=TrailerListResponse)
async def list_trailers(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Trailer).order_by(Trailer.created_at.desc(), Trailer.id.desc()))
    trailers = result.scalars().all()
    return TrailerListResponse(
        trailers=[TrailerResponse.model_validate(t) for t in trailers],
        total=len(trailers)
    )


@router.get("/{trailer_id}", response_model=TrailerResponse)
async def get_trailer(
    trailer_id: int = Path(..., description="Trailer ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trailer = await _get_trailer_or_404(db, trailer_id)
    return TrailerResponse.model_validate(trailer)


@router.post("", response_model=TrailerResponse, status_code=status.HTTP_201_CREATED)
async def create_trailer(
    trailer_data: TrailerCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Register a trailer (Admin only)."""
    await _ensure_plate_free(db, trailer_data.license_plate)

    trailer = Trailer(**trailer_data.model_dump(), status=VehicleStatus.AVAILABLE)
    db.add(trailer)
    try:
        await db.flush()
        log_event(
            db,
            AuditAction.TRAILER_CREATED,
            actor=current_user,
            entity_type="trailer",
            entity_id=trailer.id,
            metadata={"license_plate": trailer.license_plate}
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateResourceError("Trailer", "license_plate", trailer_data.license_plate)
    await db.refresh(trailer)

    return TrailerResponse.model_validate(trailer)


@router.put("/{trailer_id}", response_model=TrailerResponse)
async def update_trailer(
    update_data: TrailerUpdate,
    trailer_id: int = Path(..., description="Trailer ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a trailer (Admin only)."""
    trailer = await _get_trailer_or_404(db, trailer_id)

    changes = update_data.model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k in CLEARABLE_FIELDS}

    if changes.get("license_plate") and changes["license_plate"] != trailer.license_plate:
        await _ensure_plate_free(db, changes["license_plate"], exclude_id=trailer_id)

    for field, value in changes.items():
        setattr(trailer, field, VehicleStatus(value) if field == "status" else value)
    license_plate = trailer.license_plate

    log_event(
        db,
        AuditAction.TRAILER_UPDATED,
        actor=current_user,
        entity_type="trailer",
        entity_id=trailer_id,
        metadata={"fields": sorted(changes)}
    )
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateResourceError("Trailer", "license_plate", license_plate)
    await db.refresh(trailer)

    return TrailerResponse.model_validate(trailer)


@router.patch("/{trailer_id}/tracking", response_model=TrailerResponse)
async def update_trailer_tracking(
    update_data: TrailerTrackingUpdate,
    trailer_id: int = Path(..., description="Trailer ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record trailer condition (Admin, or a driver with an open journey using this trailer).
    """
    trailer = await _get_trailer_or_404(db, trailer_id)

    if not is_admin(current_user):
        open_count = (await db.execute(
            select(func.count(Journey.id)).where(
                Journey.trailer_id == trailer_id,
                Journey.driver_id == current_user["user_id"],
                Journey.status.in_(vehicle_registry.OPEN_JOURNEY_STATUSES)
            )
        )).scalar()
        if not open_count:
            raise InsufficientPermissionsError("Access denied. This trailer is not on one of your open journeys.")

    changes = update_data.model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k in CLEARABLE_FIELDS}
    for field, value in changes.items():
        setattr(trailer, field, value)

    log_event(
        db,
        AuditAction.TRAILER_TRACKING_UPDATED,
        actor=current_user,
        entity_type="trailer",
        entity_id=trailer_id,
        metadata={"fields": sorted(changes)}
    )
    await db.commit()
    await db.refresh(trailer)

    return TrailerResponse.model_validate(trailer)


@router.delete("/{trailer_id}")
async def delete_trailer(
    trailer_id: int = Path(..., description="Trailer ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a trailer (Admin only). Refused while any journey references it."""
    trailer = await _get_trailer_or_404(db, trailer_id)

    if await vehicle_registry.count_open_journeys(db, Journey.trailer_id, trailer_id):
        raise ResourceInUseError("Trailer", trailer_id)

    referenced = (await db.execute(
        select(func.count(Journey.id)).where(Journey.trailer_id == trailer_id)
    )).scalar()
    if referenced:
        raise ResourceInUseError(
            "Trailer", trailer_id, f"Trailer {trailer_id} has journey history and cannot be deleted"
        )

    license_plate = trailer.license_plate
    await db.delete(trailer)
    log_event(
        db,
        AuditAction.TRAILER_DELETED,
        actor=current_user,
        entity_type="trailer",
        entity_id=trailer_id,
        metadata={"license_plate": license_plate}
    )
    await db.commit()

    return {"trailer_id": trailer_id, "deleted": True}
