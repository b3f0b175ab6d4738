"""
Vehicle status engine.

Decides whether a requested status change is legal and which fields it
writes. Planning is pure (no I/O); the caller applies the plan inside its
own transaction.

Rules, in order:
    - a sold vehicle never changes status, and no change may target sold
      (selling goes through sold-conversion)
    - pickup-scheduled needs both a pickup date and a pickup time
    - requesting the current status writes nothing, except that a
      pickup-scheduled vehicle may be re-scheduled to a new date/time
    - leaving in-transit stamps in_stock_date with the operation time
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Optional, Union

from fleet_backend.app.core.exceptions import IllegalTransitionError, ValidationError
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.models.vehicle_enums import VehicleStatus


S = VehicleStatus

TRANSITIONS: Dict[VehicleStatus, FrozenSet[VehicleStatus]] = {
    S.IN_TRANSIT: frozenset({S.IN_STOCK, S.PDI, S.PENDING_PICKUP, S.PICKUP_SCHEDULED}),
    S.IN_STOCK: frozenset({S.IN_TRANSIT, S.PDI, S.PENDING_PICKUP, S.PICKUP_SCHEDULED}),
    S.PDI: frozenset({S.IN_TRANSIT, S.IN_STOCK, S.PENDING_PICKUP, S.PICKUP_SCHEDULED}),
    S.PENDING_PICKUP: frozenset({S.IN_TRANSIT, S.IN_STOCK, S.PDI, S.PICKUP_SCHEDULED}),
    S.PICKUP_SCHEDULED: frozenset({S.IN_TRANSIT, S.IN_STOCK, S.PDI, S.PENDING_PICKUP}),
    S.SOLD: frozenset(),
}


@dataclass(frozen=True)
class TransitionPlan:
    """Fields a status change will write. Empty ``fields`` means no-op."""
    current: VehicleStatus
    requested: VehicleStatus
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_noop(self) -> bool:
        return not self.fields


def can_transition(current: Union[VehicleStatus, str], requested: Union[VehicleStatus, str]) -> bool:
    return VehicleStatus(requested) in TRANSITIONS[VehicleStatus(current)]


def plan_transition(
    vehicle: Any,
    requested: Union[VehicleStatus, str],
    pickup_date: Optional[date] = None,
    pickup_time: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransitionPlan:
    """
    Plan a status change for a vehicle.

    Args:
        vehicle: Anything with ``status`` (plus ``pickup_date``/``pickup_time``
            for re-scheduling)
        requested: Target status
        pickup_date: Required when requesting pickup-scheduled
        pickup_time: Required when requesting pickup-scheduled
        now: Operation time (defaults to current UTC time)

    Returns:
        TransitionPlan with the fields to write

    Raises:
        IllegalTransitionError: Vehicle is sold, or the target is sold or not
            reachable from the current status
        ValidationError: Pickup-scheduled without both date and time
    """
    current = VehicleStatus(vehicle.status)
    try:
        requested = VehicleStatus(requested)
    except ValueError:
        raise ValidationError(
            f"Unknown status '{requested}'",
            details={"allowed": [status.value for status in VehicleStatus]},
        )

    if current.is_terminal:
        raise IllegalTransitionError(
            current.value, requested.value, "Sold vehicles cannot change status"
        )
    if requested is VehicleStatus.SOLD:
        raise IllegalTransitionError(
            current.value, requested.value, "Use mark-sold to sell a vehicle"
        )

    pickup_time = pickup_time.strip() if pickup_time else None
    if requested is VehicleStatus.PICKUP_SCHEDULED and (pickup_date is None or not pickup_time):
        raise ValidationError(
            "Pickup date and time are required to schedule a pickup",
            details={"pickupDate": pickup_date is not None, "pickupTime": bool(pickup_time)},
        )

    if requested is current:
        fields: Dict[str, Any] = {}
        if requested is VehicleStatus.PICKUP_SCHEDULED:
            if getattr(vehicle, "pickup_date", None) != pickup_date:
                fields["pickup_date"] = pickup_date
            if getattr(vehicle, "pickup_time", None) != pickup_time:
                fields["pickup_time"] = pickup_time
        return TransitionPlan(current, requested, fields)

    if requested not in TRANSITIONS[current]:
        raise IllegalTransitionError(current.value, requested.value)

    fields = {"status": requested}
    if current is VehicleStatus.IN_TRANSIT:
        fields["in_stock_date"] = now or utcnow()
    if requested is VehicleStatus.PICKUP_SCHEDULED:
        fields["pickup_date"] = pickup_date
        fields["pickup_time"] = pickup_time
    return TransitionPlan(current, requested, fields)


def apply_plan(vehicle: Any, plan: TransitionPlan) -> Any:
    for name, value in plan.fields.items():
        setattr(vehicle, name, value)
    return vehicle
