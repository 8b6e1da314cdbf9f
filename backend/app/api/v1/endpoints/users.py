"""
User Directory API Endpoints (Admin only).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.core.exceptions import DuplicateResourceError
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.schemas.user import UserCreate, UserResponse, UserListResponse
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List users, newest first, optionally only drivers or admins."""
    query = select(User).order_by(User.created_at.desc(), User.id.desc())
    if role is not None:
        query = query.where(User.role == role)

    users = (await db.execute(query)).scalars().all()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users)
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add a user to the directory (Admin only)."""
    email = user_data.email.lower()
    existing = (await db.execute(select(func.count(User.id)).where(User.email == email))).scalar()
    if existing:
        raise DuplicateResourceError("User", "email", email)

    user = User(name=user_data.name, email=email, role=user_data.role, is_active=True)
    db.add(user)
    await db.flush()

    log_event(
        db,
        AuditAction.USER_CREATED,
        actor=current_user,
        entity_type="user",
        entity_id=user.id,
        metadata={"role": user.role.value}
    )
    await db.commit()
    await db.refresh(user)

    return UserResponse.model_validate(user)
