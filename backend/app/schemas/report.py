"""
Report schemas.
"""

from pydantic import BaseModel
from typing import Dict


class UsageBucket(BaseModel):
    journeys: int
    mileage: float
    fuel: float


class FleetSummaryResponse(BaseModel):
    total_fuel: float
    total_mileage: float
    journeys_count: int
    per_truck: Dict[int, UsageBucket]
    per_driver: Dict[int, UsageBucket]
