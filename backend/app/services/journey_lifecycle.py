"""
Journey lifecycle service.

Owns the journey state machine and keeps the assigned truck's availability
consistent with it. Every operation is all-or-nothing: it either commits
the journey change, its log entry, the truck status and the audit row
together, or rolls everything back and raises a typed error.

Concurrency:
    - ``journey_locks`` / ``truck_locks`` serialize operations inside this
      process (order: journey, then truck).
    - ``TruckLock``'s partial unique index makes "one in_progress journey
      per truck" hold across processes.
    - ``Journey.version`` turns a lost update into ``ConcurrentUpdateError``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm.exc import StaleDataError

from backend.app.core.exceptions import (
    AppException, ConcurrentUpdateError, InvalidTransitionError, ResourceNotFoundError,
    RoleMismatchError, TruckUnavailableError, ValidationFailedError
)
from backend.app.core.guards import journey_guard
from backend.app.core.locks import journey_locks, truck_locks
from backend.app.models.enums import JourneyStatus, UserRole, VehicleStatus
from backend.app.models.journey import Journey, JourneyLog
from backend.app.models.user import User
from backend.app.services import vehicle_registry
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.journey_validation import (
    TRACKING_FIELDS, Violation, check_transition, is_valid_transition, parse_status,
    tracking_snapshot, validate_new_journey, validate_tracking
)

logger = logging.getLogger("fleet_tracker.journeys")

CREATED_NOTE = "Journey created"
TRACKING_STATUS_NOTE = "Status updated via tracking update"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _default_transition_note(previous: JourneyStatus, target: JourneyStatus) -> str:
    return f"Status changed from {previous.value} to {target.value}"


async def load_journey(db: AsyncSession, journey_id: int, for_update: bool = False) -> Optional[Journey]:
    """Fetch a journey with driver/truck/trailer/logs, replacing any stale session copy."""
    query = select(Journey).where(Journey.id == journey_id).execution_options(populate_existing=True)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _get_journey_or_404(db: AsyncSession, journey_id: int, for_update: bool = False) -> Journey:
    journey = await load_journey(db, journey_id, for_update=for_update)
    if journey is None:
        raise ResourceNotFoundError("Journey", journey_id)
    return journey


class JourneyLifecycleService:

    @staticmethod
    async def create_journey(db: AsyncSession, current_user: dict, data: Dict[str, Any]) -> Journey:
        """
        Create a ``to_do`` journey and reserve its truck (admin only).

        All reference checks run before anything is written. Inside the
        transaction the journey row is flushed before the truck status is
        touched; both become durable on the same commit.

        Raises:
            InsufficientPermissionsError, ValidationFailedError,
            ResourceNotFoundError, RoleMismatchError
        """
        journey_guard.enforce_admin(current_user, "create journeys")

        violations = validate_new_journey(data)
        if violations:
            raise ValidationFailedError([v.as_dict() for v in violations])

        driver_id = data["driver_id"]
        truck_id = data["truck_id"]
        trailer_id = data.get("trailer_id")

        driver = await db.get(User, driver_id)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_id)
        if driver.role != UserRole.DRIVER:
            raise RoleMismatchError(driver_id, UserRole.DRIVER.value)

        if not await vehicle_registry.truck_exists(db, truck_id):
            raise ResourceNotFoundError("Truck", truck_id)

        if trailer_id is not None and not await vehicle_registry.trailer_exists(db, trailer_id):
            raise ResourceNotFoundError("Trailer", trailer_id)

        async with truck_locks.hold(truck_id):
            try:
                journey = Journey(
                    driver_id=driver_id,
                    truck_id=truck_id,
                    trailer_id=trailer_id,
                    origin=data["origin"].strip(),
                    destination=data["destination"].strip(),
                    status=JourneyStatus.TO_DO,
                    logs=[JourneyLog(status=JourneyStatus.TO_DO, note=CREATED_NOTE, timestamp=_now())]
                )
                db.add(journey)
                await db.flush()
                journey_id = journey.id

                # An in_use truck keeps its running journey's status
                truck = await vehicle_registry.find_truck(db, truck_id, for_update=True)
                if truck.status != VehicleStatus.IN_USE:
                    await vehicle_registry.set_truck_status(db, truck_id, VehicleStatus.ASSIGNED)

                log_event(
                    db,
                    AuditAction.JOURNEY_CREATED,
                    actor=current_user,
                    entity_type="journey",
                    entity_id=journey_id,
                    metadata={"driver_id": driver_id, "truck_id": truck_id, "trailer_id": trailer_id}
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Journey %s created (driver=%s, truck=%s)", journey_id, driver_id, truck_id)
        return await load_journey(db, journey_id)

    @staticmethod
    async def get_journey(db: AsyncSession, journey_id: int, current_user: dict) -> Journey:
        journey = await _get_journey_or_404(db, journey_id)
        journey_guard.enforce(journey, current_user)
        return journey

    @staticmethod
    async def list_journeys(
        db: AsyncSession,
        current_user: dict,
        status: Optional[JourneyStatus] = None,
        truck_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[Journey], int]:
        """List journeys newest first. Drivers only ever see their own."""
        filters = []
        driver_filter = journey_guard.driver_filter(current_user)
        if driver_filter is not None:
            filters.append(Journey.driver_id == driver_filter)
        if status is not None:
            filters.append(Journey.status == status)
        if truck_id is not None:
            filters.append(Journey.truck_id == truck_id)

        total = (await db.execute(select(func.count(Journey.id)).where(*filters))).scalar()

        offset = (page - 1) * page_size
        result = await db.execute(
            select(Journey).where(*filters)
            .order_by(Journey.created_at.desc(), Journey.id.desc())
            .offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def transition_status(
        db: AsyncSession,
        journey_id: int,
        current_user: dict,
        new_status: Any,
        note: Optional[str] = None
    ) -> Journey:
        """
        Move a journey to its next status.

        Order of checks: existence, access, state machine, double-booking.

        Raises:
            ResourceNotFoundError, InsufficientPermissionsError,
            InvalidTransitionError, TruckUnavailableError, ConcurrentUpdateError
        """
        async with journey_locks.hold(journey_id):
            journey = await _get_journey_or_404(db, journey_id, for_update=True)
            journey_guard.enforce(journey, current_user)

            try:
                target = check_transition(journey.status, new_status)
            except InvalidTransitionError as exc:
                logger.warning(
                    "Journey %s transition rejected: %s -> %s",
                    journey_id, exc.current_status, exc.requested_status
                )
                raise

            truck_id = journey.truck_id
            async with truck_locks.hold(truck_id):
                previous = journey.status
                try:
                    await _apply_transition(db, journey, target, note, current_user)
                    log_event(
                        db,
                        AuditAction.JOURNEY_STATUS_CHANGED,
                        actor=current_user,
                        entity_type="journey",
                        entity_id=journey_id,
                        metadata={"from": previous.value, "to": target.value, "truck_id": truck_id}
                    )
                    await db.commit()
                except StaleDataError:
                    await db.rollback()
                    logger.warning("Journey %s changed concurrently during transition", journey_id)
                    raise ConcurrentUpdateError("Journey", journey_id)
                except Exception:
                    await db.rollback()
                    raise

        logger.info("Journey %s moved %s -> %s", journey_id, previous.value, target.value)
        return await load_journey(db, journey_id)

    @staticmethod
    async def update_tracking(
        db: AsyncSession,
        journey_id: int,
        current_user: dict,
        changes: Dict[str, Any]
    ) -> Journey:
        """
        Apply tracking fields and, optionally, a status change in one step.

        Field checks run against the merged (stored + incoming) state and are
        all reported together. ``status`` is checked against the stored status.
        A bad status on its own is an ``InvalidTransitionError``; together with
        field errors it is reported inside the ``ValidationFailedError``.

        Raises:
            ResourceNotFoundError, InsufficientPermissionsError,
            ValidationFailedError, InvalidTransitionError,
            TruckUnavailableError, ConcurrentUpdateError
        """
        note = changes.get("note")
        requested_status = changes.get("status")

        async with journey_locks.hold(journey_id):
            journey = await _get_journey_or_404(db, journey_id, for_update=True)
            journey_guard.enforce(journey, current_user)

            violations = validate_tracking(tracking_snapshot(journey), changes)

            target = None
            if requested_status is not None:
                target = parse_status(requested_status)
                if not is_valid_transition(journey.status, target):
                    if not violations:
                        logger.warning(
                            "Journey %s tracking update rejected: %s -> %s",
                            journey_id, journey.status.value, requested_status
                        )
                        raise InvalidTransitionError(journey.status.value, str(requested_status))
                    violations.append(Violation(
                        "status",
                        f"cannot move from '{journey.status.value}' to '{requested_status}'"
                    ))

            if violations:
                logger.warning(
                    "Journey %s tracking update rejected: %d violation(s)", journey_id, len(violations)
                )
                raise ValidationFailedError([v.as_dict() for v in violations])

            applied = {field: changes[field] for field in TRACKING_FIELDS if field in changes}
            truck_id = journey.truck_id
            previous = journey.status

            async with truck_locks.hold(truck_id):
                try:
                    for field, value in applied.items():
                        setattr(journey, field, value)

                    if target is not None:
                        await _apply_transition(
                            db, journey, target, note or TRACKING_STATUS_NOTE, current_user
                        )

                    log_event(
                        db,
                        AuditAction.JOURNEY_TRACKING_UPDATED,
                        actor=current_user,
                        entity_type="journey",
                        entity_id=journey_id,
                        metadata={
                            "fields": sorted(applied),
                            "status": {"from": previous.value, "to": target.value} if target else None
                        }
                    )
                    await db.commit()
                except StaleDataError:
                    await db.rollback()
                    logger.warning("Journey %s changed concurrently during tracking update", journey_id)
                    raise ConcurrentUpdateError("Journey", journey_id)
                except Exception:
                    await db.rollback()
                    raise

        logger.info("Journey %s tracking updated (%s)", journey_id, ", ".join(sorted(applied)) or "status only")
        return await load_journey(db, journey_id)

    @staticmethod
    async def delete_journey(db: AsyncSession, journey_id: int, current_user: dict) -> Optional[VehicleStatus]:
        """
        Delete a journey (admin only) and reconcile its truck.

        Returns:
            The truck status written by reconciliation, or None if unchanged
        """
        journey_guard.enforce_admin(current_user, "delete journeys")

        async with journey_locks.hold(journey_id):
            journey = await _get_journey_or_404(db, journey_id, for_update=True)
            truck_id = journey.truck_id
            deleted_status = journey.status

            async with truck_locks.hold(truck_id):
                try:
                    await vehicle_registry.purge_journey_locks(db, journey_id)
                    await db.delete(journey)
                    await db.flush()

                    truck_status = await vehicle_registry.reconcile_truck_after_delete(
                        db, truck_id, deleted_status
                    )

                    log_event(
                        db,
                        AuditAction.JOURNEY_DELETED,
                        actor=current_user,
                        entity_type="journey",
                        entity_id=journey_id,
                        metadata={
                            "truck_id": truck_id,
                            "status": deleted_status.value,
                            "truck_status": truck_status.value if truck_status else None
                        }
                    )
                    await db.commit()
                except StaleDataError:
                    await db.rollback()
                    raise ConcurrentUpdateError("Journey", journey_id)
                except Exception:
                    await db.rollback()
                    raise

        logger.info("Journey %s deleted (truck %s -> %s)", journey_id, truck_id,
                    truck_status.value if truck_status else "unchanged")
        return truck_status


async def _apply_transition(
    db: AsyncSession,
    journey: Journey,
    target: JourneyStatus,
    note: Optional[str],
    current_user: dict
) -> None:
    """
    Stage a validated transition and its side effects.

    Must run under the truck's lock and inside the caller's transaction.
    """
    journey_id = journey.id
    truck_id = journey.truck_id
    previous = journey.status

    if target == JourneyStatus.IN_PROGRESS:
        if await vehicle_registry.has_active_journey(db, truck_id, excluding_journey_id=journey_id):
            logger.warning("Journey %s blocked: truck %s already in progress elsewhere", journey_id, truck_id)
            raise TruckUnavailableError(truck_id)
        await vehicle_registry.acquire_truck_lock(db, truck_id, journey_id, current_user["user_id"])

    if previous == JourneyStatus.IN_PROGRESS:
        await vehicle_registry.release_truck_lock(db, truck_id, journey_id)

    now = _now()
    journey.status = target
    if target == JourneyStatus.IN_PROGRESS and journey.start_date is None:
        journey.start_date = now
    if target == JourneyStatus.FINISHED and journey.end_date is None:
        journey.end_date = now

    journey.logs.append(JourneyLog(
        status=target,
        note=note or _default_transition_note(previous, target),
        timestamp=now
    ))

    await vehicle_registry.set_truck_status(db, truck_id, vehicle_registry.truck_status_for(target))
