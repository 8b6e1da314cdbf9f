"""
Vehicle registry service.

Authoritative store of truck/trailer availability. The journey lifecycle
consults it (``find_truck``, ``truck_exists``, ``has_active_journey``) and
changes availability only through ``set_truck_status``.

The double-booking guard lives here too: entering ``in_progress`` takes a
``TruckLock`` row whose partial unique index allows one active lock per truck.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import ResourceNotFoundError, TruckUnavailableError
from backend.app.models.truck import Truck
from backend.app.models.trailer import Trailer
from backend.app.models.truck_lock import TruckLock
from backend.app.models.journey import Journey
from backend.app.models.enums import JourneyStatus, VehicleStatus

logger = logging.getLogger("fleet_tracker.vehicle_registry")

OPEN_JOURNEY_STATUSES = (JourneyStatus.TO_DO, JourneyStatus.IN_PROGRESS)

# Truck availability implied by the status a journey has just entered
TRUCK_STATUS_BY_JOURNEY_STATUS = {
    JourneyStatus.TO_DO: VehicleStatus.ASSIGNED,
    JourneyStatus.IN_PROGRESS: VehicleStatus.IN_USE,
    JourneyStatus.FINISHED: VehicleStatus.AVAILABLE,
}


def truck_status_for(journey_status: JourneyStatus) -> VehicleStatus:
    return TRUCK_STATUS_BY_JOURNEY_STATUS.get(journey_status, VehicleStatus.AVAILABLE)


async def find_truck(db: AsyncSession, truck_id: int, for_update: bool = False) -> Optional[Truck]:
    """
    Load a truck, bypassing any stale copy in the session identity map.

    Args:
        for_update: Take a row lock (PostgreSQL) for the rest of the transaction
    """
    return await db.get(Truck, truck_id, populate_existing=True, with_for_update=for_update)


async def find_trailer(db: AsyncSession, trailer_id: int) -> Optional[Trailer]:
    return await db.get(Trailer, trailer_id, populate_existing=True)


async def truck_exists(db: AsyncSession, truck_id: int) -> bool:
    result = await db.execute(select(func.count(Truck.id)).where(Truck.id == truck_id))
    return result.scalar() > 0


async def trailer_exists(db: AsyncSession, trailer_id: int) -> bool:
    result = await db.execute(select(func.count(Trailer.id)).where(Trailer.id == trailer_id))
    return result.scalar() > 0


async def set_truck_status(db: AsyncSession, truck_id: int, status: VehicleStatus) -> Truck:
    """
    Single write path for a truck's availability status.

    The change is staged in the caller's transaction.

    Raises:
        ResourceNotFoundError: If the truck does not exist
    """
    truck = await find_truck(db, truck_id, for_update=True)
    if truck is None:
        raise ResourceNotFoundError("Truck", truck_id)

    if truck.status != status:
        logger.info(
            "Truck %s status %s -> %s", truck_id, truck.status.value, status.value
        )
        truck.status = status
    return truck


async def has_active_journey(
    db: AsyncSession,
    truck_id: int,
    excluding_journey_id: Optional[int] = None,
    statuses: Iterable[JourneyStatus] = (JourneyStatus.IN_PROGRESS,)
) -> bool:
    """
    Check whether any journey referencing the truck is in one of ``statuses``.

    Defaults to ``in_progress`` (double-booking guard); pass
    ``OPEN_JOURNEY_STATUSES`` for delete reconciliation.
    """
    query = select(func.count(Journey.id)).where(
        Journey.truck_id == truck_id,
        Journey.status.in_(list(statuses))
    )
    if excluding_journey_id is not None:
        query = query.where(Journey.id != excluding_journey_id)

    result = await db.execute(query)
    return result.scalar() > 0


async def count_open_journeys(db: AsyncSession, column, vehicle_id: int) -> int:
    """Count to_do/in_progress journeys where ``column`` (truck_id/trailer_id) equals ``vehicle_id``."""
    result = await db.execute(
        select(func.count(Journey.id)).where(
            column == vehicle_id,
            Journey.status.in_(OPEN_JOURNEY_STATUSES)
        )
    )
    return result.scalar()


async def acquire_truck_lock(
    db: AsyncSession,
    truck_id: int,
    journey_id: int,
    user_id: int
) -> TruckLock:
    """
    Take the active lock on a truck for a journey entering ``in_progress``.

    The unique partial index rejects a second active lock for the same truck
    even when the competing writer runs in another process.

    Raises:
        TruckUnavailableError: If another journey already holds the truck.
            The session is rolled back before raising.
    """
    lock = TruckLock(
        truck_id=truck_id,
        journey_id=journey_id,
        locked_by_user_id=user_id,
        locked_at=datetime.now(timezone.utc),
        released_at=None
    )

    db.add(lock)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning("Truck %s lock rejected for journey %s: already locked", truck_id, journey_id)
        raise TruckUnavailableError(truck_id)

    return lock


async def is_truck_locked(
    db: AsyncSession,
    truck_id: int
) -> tuple[bool, TruckLock | None]:
    """
    Check if a truck is currently locked.

    Returns:
        (is_locked: bool, lock: TruckLock | None)
    """
    result = await db.execute(
        select(TruckLock).where(
            TruckLock.truck_id == truck_id,
            TruckLock.released_at.is_(None)
        )
    )
    lock = result.scalar_one_or_none()

    return (lock is not None, lock)


async def release_truck_lock(
    db: AsyncSession,
    truck_id: int,
    journey_id: int
) -> bool:
    """
    Release the active lock a journey holds on a truck.

    Returns:
        True if a lock was released, False if the journey held none
    """
    result = await db.execute(
        select(TruckLock).where(
            TruckLock.truck_id == truck_id,
            TruckLock.journey_id == journey_id,
            TruckLock.released_at.is_(None)
        )
    )
    lock = result.scalar_one_or_none()

    if not lock:
        return False

    lock.released_at = datetime.now(timezone.utc)
    await db.flush()

    return True


async def purge_journey_locks(db: AsyncSession, journey_id: int) -> None:
    """Remove every lock row (active or released) that belongs to a journey being deleted."""
    await db.execute(delete(TruckLock).where(TruckLock.journey_id == journey_id))


async def reconcile_truck_after_delete(
    db: AsyncSession,
    truck_id: int,
    deleted_status: JourneyStatus
) -> Optional[VehicleStatus]:
    """
    Re-evaluate a truck once one of its journeys has been deleted (and flushed).

    - No open journey left: the truck becomes ``available``.
    - The deleted journey was the in-progress holder and only to_do
      journeys remain: the truck goes back to ``assigned``.
    - Otherwise the status is left unchanged.

    Returns:
        The status written, or None if unchanged
    """
    if not await has_active_journey(db, truck_id, statuses=OPEN_JOURNEY_STATUSES):
        await set_truck_status(db, truck_id, VehicleStatus.AVAILABLE)
        return VehicleStatus.AVAILABLE

    if deleted_status == JourneyStatus.IN_PROGRESS and not await has_active_journey(db, truck_id):
        await set_truck_status(db, truck_id, VehicleStatus.ASSIGNED)
        return VehicleStatus.ASSIGNED

    return None
