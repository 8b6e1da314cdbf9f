"""
Enumerations for the fleet tracker.

Defines roles, journey lifecycle states, vehicle availability states and
tire inventory states.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages the fleet, creates and deletes journeys
        DRIVER: Executes journeys assigned to them (default role)
    """
    ADMIN = "admin"
    DRIVER = "driver"


class JourneyStatus(str, enum.Enum):
    """Journey lifecycle status."""
    TO_DO = "to_do"  # Created, truck reserved
    IN_PROGRESS = "in_progress"  # Driver on the road, truck locked
    FINISHED = "finished"  # Terminal


class VehicleStatus(str, enum.Enum):
    """Truck/trailer availability status."""
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    ASSIGNED = "assigned"  # Referenced by a to_do journey
    IN_USE = "in_use"  # Held by an in_progress journey (trucks only)


class MaintenanceType(str, enum.Enum):
    """Kind of maintenance a rule describes."""
    TIRE = "tire"
    OIL = "oil"
    REVISION = "revision"


class AssetType(str, enum.Enum):
    """Which assets a maintenance rule applies to."""
    TRUCK = "truck"
    TRAILER = "trailer"
    ALL = "all"


class TireStatus(str, enum.Enum):
    """Where a tire is in its service life."""
    IN_STOCK = "in_stock"
    MOUNTED = "mounted"  # Fitted to a truck or trailer
    RETIRED = "retired"  # Terminal for mounting purposes


class TireEvent(str, enum.Enum):
    """Kinds of entries in a tire's history."""
    CREATED = "created"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    WEAR = "wear"
    STATUS = "status"
