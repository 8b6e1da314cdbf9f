"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    journeys, trucks, trailers, tires, users, maintenance_rules, reports
)

router = APIRouter()

# Journey lifecycle
router.include_router(journeys.router)

# Vehicle registry administration
router.include_router(trucks.router)
router.include_router(trailers.router)
router.include_router(tires.router)

# User directory
router.include_router(users.router)

# Maintenance advisor and reporting
router.include_router(maintenance_rules.router)
router.include_router(reports.router)
