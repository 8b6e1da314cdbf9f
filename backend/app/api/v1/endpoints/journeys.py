"""
Journey API Endpoints.

Thin HTTP layer over ``JourneyLifecycleService``: access control, state
machine checks and truck coordination all happen in the service, and its
typed errors are rendered by the global exception handlers.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.models.enums import JourneyStatus
from backend.app.schemas.journey import (
    JourneyCreate, JourneyStatusUpdate, JourneyTrackingUpdate,
    JourneyResponse, JourneyListResponse, JourneyDeleteResponse
)
from backend.app.services.journey_lifecycle import JourneyLifecycleService

router = APIRouter(prefix="/journeys", tags=["Journeys"])


@router.post("", response_model=JourneyResponse, status_code=status.HTTP_201_CREATED)
async def create_journey(
    journey_data: JourneyCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a journey (Admin only).

    The journey starts as ``to_do`` with one log entry and the truck is
    marked ``assigned``.
    """
    journey = await JourneyLifecycleService.create_journey(
        db, current_user, journey_data.model_dump()
    )
    return JourneyResponse.model_validate(journey)


@router.get("", response_model=JourneyListResponse)
async def list_journeys(
    status_filter: Optional[JourneyStatus] = Query(None, alias="status", description="Filter by status"),
    truck_id: Optional[int] = Query(None, description="Filter by truck"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List journeys, newest first.

    Drivers only see journeys assigned to them.
    """
    journeys, total = await JourneyLifecycleService.list_journeys(
        db, current_user, status=status_filter, truck_id=truck_id, page=page, page_size=page_size
    )
    return JourneyListResponse(
        journeys=[JourneyResponse.model_validate(j) for j in journeys],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{journey_id}", response_model=JourneyResponse)
async def get_journey(
    journey_id: int = Path(..., description="Journey ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a journey (Admin or the assigned driver)."""
    journey = await JourneyLifecycleService.get_journey(db, journey_id, current_user)
    return JourneyResponse.model_validate(journey)


@router.patch("/{journey_id}/status", response_model=JourneyResponse)
async def update_journey_status(
    update: JourneyStatusUpdate,
    journey_id: int = Path(..., description="Journey ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a journey to its next status (Admin or the assigned driver).

    Allowed: ``to_do -> in_progress``, ``in_progress -> finished``.
    Starting a journey fails with 409 while another journey holds the truck.
    """
    journey = await JourneyLifecycleService.transition_status(
        db, journey_id, current_user, update.status, update.note
    )
    return JourneyResponse.model_validate(journey)


@router.patch("/{journey_id}/tracking", response_model=JourneyResponse)
async def update_journey_tracking(
    update: JourneyTrackingUpdate,
    journey_id: int = Path(..., description="Journey ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record mileage, fuel, tire status and remarks, optionally with a status change.

    Only fields present in the body are applied. Every violated constraint is
    returned together and nothing is saved when any check fails.
    """
    journey = await JourneyLifecycleService.update_tracking(
        db, journey_id, current_user, update.model_dump(exclude_unset=True)
    )
    return JourneyResponse.model_validate(journey)


@router.delete("/{journey_id}", response_model=JourneyDeleteResponse)
async def delete_journey(
    journey_id: int = Path(..., description="Journey ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a journey (Admin only) and release its truck if nothing else needs it."""
    truck_status = await JourneyLifecycleService.delete_journey(db, journey_id, current_user)
    return JourneyDeleteResponse(
        journey_id=journey_id,
        deleted=True,
        truck_status=truck_status.value if truck_status else None
    )
