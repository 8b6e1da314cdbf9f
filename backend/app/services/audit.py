"""
Audit logging service for tracking fleet changes.

Entries are added to the caller's session and committed together with the
change they describe, so a rejected operation never leaves an audit row.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Journey lifecycle
    JOURNEY_CREATED = "JOURNEY_CREATED"
    JOURNEY_STATUS_CHANGED = "JOURNEY_STATUS_CHANGED"
    JOURNEY_TRACKING_UPDATED = "JOURNEY_TRACKING_UPDATED"
    JOURNEY_DELETED = "JOURNEY_DELETED"

    # Vehicle administration
    TRUCK_CREATED = "TRUCK_CREATED"
    TRUCK_UPDATED = "TRUCK_UPDATED"
    TRUCK_TRACKING_UPDATED = "TRUCK_TRACKING_UPDATED"
    TRUCK_DELETED = "TRUCK_DELETED"
    TRAILER_CREATED = "TRAILER_CREATED"
    TRAILER_UPDATED = "TRAILER_UPDATED"
    TRAILER_TRACKING_UPDATED = "TRAILER_TRACKING_UPDATED"
    TRAILER_DELETED = "TRAILER_DELETED"

    # Tire inventory
    TIRE_CREATED = "TIRE_CREATED"
    TIRE_UPDATED = "TIRE_UPDATED"
    TIRE_ASSIGNED = "TIRE_ASSIGNED"
    TIRE_UNASSIGNED = "TIRE_UNASSIGNED"
    TIRE_WEAR_RECORDED = "TIRE_WEAR_RECORDED"
    TIRE_DELETED = "TIRE_DELETED"

    # Maintenance rules
    MAINTENANCE_RULE_CREATED = "MAINTENANCE_RULE_CREATED"
    MAINTENANCE_RULE_UPDATED = "MAINTENANCE_RULE_UPDATED"
    MAINTENANCE_RULE_DELETED = "MAINTENANCE_RULE_DELETED"

    # User directory
    USER_CREATED = "USER_CREATED"


def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[Dict[str, Any]] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Stage an audit event in the current transaction.

    Args:
        db: Database session (the caller commits)
        action: Action being performed (use AuditAction constants)
        actor: Actor payload from ``get_current_user`` (None for system actions)
        entity_type: Kind of entity acted upon ("journey", "truck", ...)
        entity_id: ID of the entity acted upon
        metadata: Additional context as JSON

    Returns:
        Pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor.get("user_id") if actor else None,
        actor_role=actor.get("role") if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata
    )
    db.add(audit_log)
    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id is not None:
        query = query.where(AuditLog.entity_id == entity_id)

    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
