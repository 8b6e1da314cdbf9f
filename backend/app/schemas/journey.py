"""
Journey schemas.

Request bodies stay permissive on purpose where the service performs the
domain checks (so that every violation can be reported at once); response
models resolve driver/truck/trailer references for display.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, List, Optional


class JourneyCreate(BaseModel):
    """Schema for creating a journey (admin only)."""
    driver_id: Optional[int] = Field(None, description="User ID of the assigned driver")
    truck_id: Optional[int] = Field(None, description="Truck ID")
    trailer_id: Optional[int] = Field(None, description="Optional trailer ID")
    origin: Optional[str] = Field(None, max_length=255)
    destination: Optional[str] = Field(None, max_length=255)


class JourneyStatusUpdate(BaseModel):
    """Schema for a status transition."""
    status: str = Field(..., description="Target status: to_do, in_progress or finished")
    note: Optional[str] = Field(None, max_length=1000)


class JourneyTrackingUpdate(BaseModel):
    """Partial tracking update; only fields present in the body are applied."""
    # Numeric fields are checked by the service so bad types are reported
    # alongside range violations
    mileage_start: Optional[Any] = None
    mileage_end: Optional[Any] = None
    fuel_volume: Optional[Any] = None
    tire_status: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None
    status: Optional[str] = None
    note: Optional[str] = Field(None, max_length=1000)


class DriverSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class TruckSummary(BaseModel):
    id: int
    license_plate: str
    model: str

    class Config:
        from_attributes = True


class TrailerSummary(BaseModel):
    id: int
    license_plate: str
    type: str

    class Config:
        from_attributes = True


class JourneyLogResponse(BaseModel):
    status: str
    note: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class JourneyResponse(BaseModel):
    """Schema for journey response."""
    id: int
    driver_id: int
    truck_id: int
    trailer_id: Optional[int]
    driver: Optional[DriverSummary]
    truck: Optional[TruckSummary]
    trailer: Optional[TrailerSummary]
    origin: str
    destination: str
    status: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    mileage_start: Optional[float]
    mileage_end: Optional[float]
    fuel_volume: Optional[float]
    tire_status: str
    remarks: Optional[str]
    logs: List[JourneyLogResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JourneyListResponse(BaseModel):
    """Schema for paginated journey list."""
    journeys: List[JourneyResponse]
    total: int
    page: int
    page_size: int


class JourneyDeleteResponse(BaseModel):
    journey_id: int
    deleted: bool
    truck_status: Optional[str]
