"""
Report API Endpoints (Admin only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.schemas.report import FleetSummaryResponse
from backend.app.services.reporting import ReportingService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/summary", response_model=FleetSummaryResponse)
async def fleet_summary(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Fuel and mileage totals across all journeys, per truck and per driver."""
    return FleetSummaryResponse(**await ReportingService.summary(db))
