"""
Maintenance rule and alert schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from backend.app.models.enums import MaintenanceType, AssetType


class MaintenanceRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    type: MaintenanceType
    applies_to: AssetType = AssetType.ALL
    threshold_km: Optional[float] = Field(None, gt=0)
    threshold_days: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None


class MaintenanceRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[MaintenanceType] = None
    applies_to: Optional[AssetType] = None
    threshold_km: Optional[float] = Field(None, gt=0)
    threshold_days: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None


class MaintenanceRuleResponse(BaseModel):
    id: int
    name: str
    type: str
    applies_to: str
    threshold_km: Optional[float]
    threshold_days: Optional[int]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaintenanceAlertResponse(BaseModel):
    asset_type: str
    asset_id: int
    license_plate: str
    rule: Optional[str]
    type: Optional[str]
    due_by_date: Optional[datetime]
    due_by_km: Optional[float]
    status: str  # overdue / upcoming

    class Config:
        from_attributes = True


class MaintenanceAlertListResponse(BaseModel):
    alerts: List[MaintenanceAlertResponse]
    total: int
