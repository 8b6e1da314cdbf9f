"""
Journey validation.

One place for the journey state machine and for input checks shared by the
status and tracking operations. Field checks never stop at the first
problem: they return every violation so the caller can reject the request
as a whole.
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional

from backend.app.core.config import settings
from backend.app.core.exceptions import InvalidTransitionError
from backend.app.models.enums import JourneyStatus

# to_do -> in_progress -> finished; finished is terminal
ALLOWED_TRANSITIONS = {
    JourneyStatus.TO_DO: frozenset({JourneyStatus.IN_PROGRESS}),
    JourneyStatus.IN_PROGRESS: frozenset({JourneyStatus.FINISHED}),
    JourneyStatus.FINISHED: frozenset(),
}

TRACKING_FIELDS = ("mileage_start", "mileage_end", "fuel_volume", "tire_status", "remarks")

REQUIRED_JOURNEY_FIELDS = ("driver_id", "truck_id", "origin", "destination")


@dataclass(frozen=True)
class Violation:
    """A single violated constraint on one field."""
    field: str
    reason: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def parse_status(value: Any) -> Optional[JourneyStatus]:
    """Map a raw status string onto ``JourneyStatus``; None if unrecognized."""
    if isinstance(value, JourneyStatus):
        return value
    try:
        return JourneyStatus(value)
    except ValueError:
        return None


def is_valid_transition(current: JourneyStatus, requested: Optional[JourneyStatus]) -> bool:
    if requested is None:
        return False
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: JourneyStatus, requested: Any) -> JourneyStatus:
    """
    Validate a requested status change against the state machine.

    Returns:
        The parsed target status

    Raises:
        InvalidTransitionError: Unknown status, same-state request, or a move
            the state machine does not allow
    """
    target = parse_status(requested)
    if not is_valid_transition(current, target):
        raise InvalidTransitionError(
            current_status=current.value,
            requested_status=target.value if target else (None if requested is None else str(requested))
        )
    return target


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_new_journey(data: Mapping[str, Any]) -> List[Violation]:
    """Required-field checks for journey creation."""
    violations = []
    for field in REQUIRED_JOURNEY_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            violations.append(Violation(field, "is required"))
    return violations


def validate_tracking(current: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Violation]:
    """
    Check tracking fields against the prospective merged state.

    Args:
        current: Stored tracking values (``mileage_start``, ``mileage_end``, ...)
        changes: Incoming values; only keys present are applied

    Returns:
        Every violation found (empty when the update is acceptable)
    """
    violations = []
    merged = {field: current.get(field) for field in TRACKING_FIELDS}
    merged.update({k: v for k, v in changes.items() if k in TRACKING_FIELDS})

    for field in ("mileage_start", "mileage_end"):
        if field in changes and changes[field] is not None:
            value = changes[field]
            if not _is_number(value):
                violations.append(Violation(field, "must be a number"))
            elif value < 0:
                violations.append(Violation(field, "must be non-negative"))

    start, end = merged["mileage_start"], merged["mileage_end"]
    if _is_number(start) and _is_number(end) and end <= start:
        violations.append(
            Violation("mileage_end", f"must be greater than mileage_start ({start})")
        )

    if "fuel_volume" in changes and changes["fuel_volume"] is not None:
        fuel = changes["fuel_volume"]
        if not _is_number(fuel):
            violations.append(Violation("fuel_volume", "must be a number"))
        elif fuel < 0 or fuel > settings.max_fuel_volume:
            violations.append(
                Violation("fuel_volume", f"must be between 0 and {settings.max_fuel_volume:g}")
            )

    if "tire_status" in changes:
        tire_status = changes["tire_status"]
        if not isinstance(tire_status, str) or not tire_status.strip():
            violations.append(Violation("tire_status", "must be a non-empty string"))

    return violations


def tracking_snapshot(journey) -> Dict[str, Any]:
    """Current tracking values of a journey, keyed like the update payload."""
    return {field: getattr(journey, field) for field in TRACKING_FIELDS}
