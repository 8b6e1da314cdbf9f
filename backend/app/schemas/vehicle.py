"""
Truck and trailer Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal

# Statuses an admin may set by hand; assigned/in_use are driven by journeys
ManualVehicleStatus = Literal["available", "maintenance"]


class TruckCreate(BaseModel):
    """Schema for registering a truck."""
    license_plate: str = Field(..., min_length=1, max_length=50, description="Unique license plate")
    model: str = Field(..., min_length=1, max_length=100)
    capacity: float = Field(0, ge=0)
    mileage: float = Field(0, ge=0)
    fuel_level: float = Field(0, ge=0)
    tire_status: str = Field("ok", min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None


class TruckUpdate(BaseModel):
    """Schema for updating a truck."""
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[float] = Field(None, ge=0)
    status: Optional[ManualVehicleStatus] = None
    mileage: Optional[float] = Field(None, ge=0)
    fuel_level: Optional[float] = Field(None, ge=0)
    tire_status: Optional[str] = Field(None, min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None


class TruckTrackingUpdate(BaseModel):
    """Condition data a driver or admin records on a truck."""
    mileage: Optional[float] = Field(None, ge=0)
    fuel_level: Optional[float] = Field(None, ge=0)
    tire_status: Optional[str] = Field(None, min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None


class TruckResponse(BaseModel):
    """Schema for truck response."""
    id: int
    license_plate: str
    model: str
    capacity: float
    status: str
    mileage: float
    fuel_level: float
    tire_status: str
    maintenance_due_date: Optional[datetime]
    last_service_date: Optional[datetime]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TruckListResponse(BaseModel):
    trucks: List[TruckResponse]
    total: int


class TrailerCreate(BaseModel):
    """Schema for registering a trailer."""
    license_plate: str = Field(..., min_length=1, max_length=50)
    type: str = Field(..., min_length=1, max_length=100)
    capacity: float = Field(0, ge=0)
    mileage: float = Field(0, ge=0)
    tire_status: str = Field("ok", min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None


class TrailerUpdate(BaseModel):
    """Schema for updating a trailer."""
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[float] = Field(None, ge=0)
    status: Optional[ManualVehicleStatus] = None
    mileage: Optional[float] = Field(None, ge=0)
    tire_status: Optional[str] = Field(None, min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None


class TrailerResponse(BaseModel):
    """Schema for trailer response."""
    id: int
    license_plate: str
    type: str
    capacity: float
    status: str
    mileage: float
    tire_status: str
    maintenance_due_date: Optional[datetime]
    last_service_date: Optional[datetime]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TrailerListResponse(BaseModel):
    trailers: List[TrailerResponse]
    total: int


class TrailerTrackingUpdate(BaseModel):
    """Condition data a driver or admin records on a trailer."""
    mileage: Optional[float] = Field(None, ge=0)
    tire_status: Optional[str] = Field(None, min_length=1, max_length=100)
    maintenance_due_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    notes: Optional[str] = None
