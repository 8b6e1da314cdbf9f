"""
Security guards for role-based and journey-level access control.

Every journey operation that is not admin-exclusive goes through
``can_access_journey``; admin-exclusive operations go through
``JourneyAccessGuard.enforce_admin``. Routers use ``require_admin`` for
resource administration endpoints.
"""

from typing import Optional
from fastapi import Depends

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole


def is_admin(current_user: dict) -> bool:
    return current_user.get("role") == UserRole.ADMIN.value


def can_access_journey(journey, current_user: dict) -> bool:
    """
    Pure predicate: the actor is an admin, or is the journey's assigned driver.

    Args:
        journey: Any object exposing ``driver_id``
        current_user: Actor payload (``user_id``, ``role``)
    """
    if is_admin(current_user):
        return True
    return journey.driver_id is not None and journey.driver_id == current_user.get("user_id")


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency for admin-only endpoints."""
    if not is_admin(current_user):
        raise InsufficientPermissionsError("Admin access required")
    return current_user


class JourneyAccessGuard:
    """
    Capability checks consumed uniformly by the journey lifecycle service.

    Usage:
        journey_guard = JourneyAccessGuard()
        journey_guard.enforce(journey, current_user)
    """

    def enforce(self, journey, current_user: dict):
        """Raise 403 unless the actor may read/mutate this journey."""
        if not can_access_journey(journey, current_user):
            raise InsufficientPermissionsError(
                "Access denied. This journey is not assigned to you.",
                details={"journey_id": journey.id}
            )

    def enforce_admin(self, current_user: dict, action: str = "perform this action"):
        """Raise 403 unless the actor is an admin."""
        if not is_admin(current_user):
            raise InsufficientPermissionsError(f"Admin access required to {action}")

    def driver_filter(self, current_user: dict) -> Optional[int]:
        """
        Driver id to filter journey queries by.

        Admins see everything (None); drivers only their own journeys.
        """
        if is_admin(current_user):
            return None
        return current_user.get("user_id")


journey_guard = JourneyAccessGuard()
