"""
Vehicle lifecycle enumerations.

The status values double as the wire format used by the dealership UI and
by exported snapshots, so member values are the lowercase hyphenated strings.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """
    Vehicle status enumeration.
    
    Statuses:
        IN_TRANSIT: Ordered, not yet on the lot (initial state)
        IN_STOCK: On the lot
        PDI: Pre-delivery inspection
        PENDING_PICKUP: Ready, waiting for the fleet customer to book a slot
        PICKUP_SCHEDULED: Pickup date and time agreed
        SOLD: Terminal; only reachable through sold-conversion
    """
    IN_TRANSIT = "in-transit"
    IN_STOCK = "in-stock"
    PDI = "pdi"
    PENDING_PICKUP = "pending-pickup"
    PICKUP_SCHEDULED = "pickup-scheduled"
    SOLD = "sold"

    @property
    def is_terminal(self) -> bool:
        return self is VehicleStatus.SOLD


def enum_values(enum_cls):
    """Persist enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
