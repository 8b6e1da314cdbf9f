"""
Tire inventory schemas.

Status and mount fields are not editable through ``TireUpdate``; they change
only through the assign, unassign and wear operations so every change leaves
a history entry.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal

# Vehicles a tire can be mounted on
MountTarget = Literal["truck", "trailer"]


class TireCreate(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=100, description="Unique serial number")
    brand: Optional[str] = Field(None, max_length=100)
    size: Optional[str] = Field(None, max_length=50)
    tread_depth: float = Field(0, ge=0, description="Tread depth in millimetres")
    notes: Optional[str] = None


class TireUpdate(BaseModel):
    serial_number: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    size: Optional[str] = Field(None, max_length=50)
    tread_depth: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class TireAssign(BaseModel):
    """Mount a tire on a truck or trailer."""
    assigned_to_type: MountTarget
    assigned_to_id: int
    position: str = Field(..., min_length=1, max_length=50)
    mileage_at_install: Optional[float] = Field(None, ge=0)


class TireWear(BaseModel):
    """A wear reading; ``status`` may only retire the tire."""
    tread_depth: Optional[float] = Field(None, ge=0)
    status: Optional[Literal["retired"]] = None
    note: Optional[str] = Field(None, max_length=1000)
    mileage: Optional[float] = Field(None, ge=0)


class TireHistoryResponse(BaseModel):
    action: str
    note: Optional[str]
    tread_depth: Optional[float]
    mileage: Optional[float]
    timestamp: datetime

    class Config:
        from_attributes = True


class TireResponse(BaseModel):
    id: int
    serial_number: str
    brand: Optional[str]
    size: Optional[str]
    status: str
    tread_depth: float
    position: Optional[str]
    assigned_to_type: Optional[str]
    assigned_to_id: Optional[int]
    mileage_at_install: Optional[float]
    notes: Optional[str]
    history: List[TireHistoryResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TireListResponse(BaseModel):
    tires: List[TireResponse]
    total: int
