"""
Maintenance advisor.

Stateless scan of trucks and trailers against maintenance rules, producing
``overdue`` / ``upcoming`` alerts. Read-only.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.core.config import settings
from backend.app.models.enums import AssetType
from backend.app.models.maintenance_rule import MaintenanceRule
from backend.app.models.trailer import Trailer
from backend.app.models.truck import Truck

OVERDUE = "overdue"
UPCOMING = "upcoming"


@dataclass
class MaintenanceAlert:
    asset_type: str
    asset_id: int
    license_plate: str
    rule: Optional[str]
    type: Optional[str]
    due_by_date: Optional[datetime]
    due_by_km: Optional[float]
    status: str


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_between(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() / 86400)


def _rule_applies(rule: MaintenanceRule, asset_type: AssetType) -> bool:
    return rule.applies_to in (AssetType.ALL, asset_type)


def evaluate_asset(
    asset,
    asset_type: AssetType,
    rules: Iterable[MaintenanceRule],
    now: datetime,
    upcoming_days: int,
    upcoming_km: float
) -> List[MaintenanceAlert]:
    """Alerts for one truck/trailer."""
    alerts = []
    mileage = asset.mileage
    base_date = _aware(asset.last_service_date or asset.updated_at)

    for rule in rules:
        if not _rule_applies(rule, asset_type):
            continue

        due_by_date = None
        if rule.threshold_days and base_date is not None:
            due_by_date = base_date + timedelta(days=rule.threshold_days)
        due_by_km = mileage + rule.threshold_km if rule.threshold_km and mileage is not None else None

        overdue = (
            (due_by_date is not None and now > due_by_date)
            or (due_by_km is not None and mileage >= due_by_km)
        )
        upcoming = (
            (due_by_date is not None and _days_between(now, due_by_date) <= upcoming_days)
            or (due_by_km is not None and due_by_km - mileage <= upcoming_km)
        )
        if overdue or upcoming:
            alerts.append(MaintenanceAlert(
                asset_type=asset_type.value,
                asset_id=asset.id,
                license_plate=asset.license_plate,
                rule=rule.name,
                type=rule.type.value,
                due_by_date=due_by_date,
                due_by_km=due_by_km,
                status=OVERDUE if overdue else UPCOMING
            ))

    # Explicit due date set on the asset itself
    due_date = _aware(asset.maintenance_due_date)
    if due_date is not None and _days_between(now, due_date) <= upcoming_days:
        alerts.append(MaintenanceAlert(
            asset_type=asset_type.value,
            asset_id=asset.id,
            license_plate=asset.license_plate,
            rule=None,
            type=None,
            due_by_date=due_date,
            due_by_km=None,
            status=OVERDUE if now > due_date else UPCOMING
        ))

    return alerts


def evaluate_fleet(
    assets: Iterable[Tuple[AssetType, object]],
    rules: List[MaintenanceRule],
    now: Optional[datetime] = None,
    upcoming_days: Optional[int] = None,
    upcoming_km: Optional[float] = None
) -> List[MaintenanceAlert]:
    now = _aware(now) or datetime.now(timezone.utc)
    days = settings.maintenance_upcoming_days if upcoming_days is None else upcoming_days
    km = settings.maintenance_upcoming_km if upcoming_km is None else upcoming_km

    alerts = []
    for asset_type, asset in assets:
        alerts.extend(evaluate_asset(asset, asset_type, rules, now, days, km))
    return alerts


class MaintenanceAdvisor:

    @staticmethod
    async def upcoming(db: AsyncSession, now: Optional[datetime] = None) -> List[MaintenanceAlert]:
        """Scan every truck and trailer against every rule."""
        rules = list((await db.execute(select(MaintenanceRule))).scalars().all())
        trucks = (await db.execute(select(Truck).order_by(Truck.id))).scalars().all()
        trailers = (await db.execute(select(Trailer).order_by(Trailer.id))).scalars().all()

        assets = [(AssetType.TRUCK, t) for t in trucks] + [(AssetType.TRAILER, t) for t in trailers]
        return evaluate_fleet(assets, rules, now=now)
