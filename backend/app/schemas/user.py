"""
User directory schemas.
"""

from pydantic import BaseModel, Field, EmailStr
from datetime import datetime
from typing import List

from backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """Schema for adding a user to the directory (admin only)."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: UserRole = UserRole.DRIVER


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
