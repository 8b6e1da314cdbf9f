"""
Maintenance Rule API Endpoints (Admin only).
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.maintenance_rule import MaintenanceRule
from backend.app.schemas.maintenance import (
    MaintenanceRuleCreate, MaintenanceRuleUpdate, MaintenanceRuleResponse,
    MaintenanceAlertResponse, MaintenanceAlertListResponse
)
from backend.app.services.maintenance import MaintenanceAdvisor
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/maintenance-rules", tags=["Maintenance Rules"])


async def _get_rule_or_404(db: AsyncSession, rule_id: int) -> MaintenanceRule:
    rule = await db.get(MaintenanceRule, rule_id)
    if not rule:
        raise ResourceNotFoundError("Maintenance rule", rule_id)
    return rule


@router.get("", response_model=list[MaintenanceRuleResponse])
async def list_rules(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(MaintenanceRule).order_by(MaintenanceRule.created_at.desc(), MaintenanceRule.id.desc())
    )
    return [MaintenanceRuleResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/upcoming", response_model=MaintenanceAlertListResponse)
async def upcoming_maintenance(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Due and overdue maintenance across trucks and trailers."""
    alerts = await MaintenanceAdvisor.upcoming(db)
    return MaintenanceAlertListResponse(
        alerts=[MaintenanceAlertResponse.model_validate(a) for a in alerts],
        total=len(alerts)
    )


@router.post("", response_model=MaintenanceRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    rule_data: MaintenanceRuleCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    rule = MaintenanceRule(**rule_data.model_dump())
    db.add(rule)
    await db.flush()

    log_event(
        db,
        AuditAction.MAINTENANCE_RULE_CREATED,
        actor=current_user,
        entity_type="maintenance_rule",
        entity_id=rule.id,
        metadata={"name": rule.name, "type": rule.type.value}
    )
    await db.commit()
    await db.refresh(rule)

    return MaintenanceRuleResponse.model_validate(rule)


@router.put("/{rule_id}", response_model=MaintenanceRuleResponse)
async def update_rule(
    update_data: MaintenanceRuleUpdate,
    rule_id: int = Path(..., description="Rule ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    rule = await _get_rule_or_404(db, rule_id)

    changes = update_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in ("name", "type", "applies_to"):
            continue
        setattr(rule, field, value)

    log_event(
        db,
        AuditAction.MAINTENANCE_RULE_UPDATED,
        actor=current_user,
        entity_type="maintenance_rule",
        entity_id=rule_id,
        metadata={"fields": sorted(changes)}
    )
    await db.commit()
    await db.refresh(rule)

    return MaintenanceRuleResponse.model_validate(rule)


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: int = Path(..., description="Rule ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    rule = await _get_rule_or_404(db, rule_id)
    await db.delete(rule)
    log_event(
        db,
        AuditAction.MAINTENANCE_RULE_DELETED,
        actor=current_user,
        entity_type="maintenance_rule",
        entity_id=rule_id
    )
    await db.commit()

    return {"rule_id": rule_id, "deleted": True}
