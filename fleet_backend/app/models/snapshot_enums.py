"""
Snapshot and import enumerations.
"""

import enum


class EntityKind(str, enum.Enum):
    """Entity kinds held by the store; values are the snapshot array keys."""
    INVENTORY = "inventory"
    SOLD_VEHICLES = "soldVehicles"
    TRADE_INS = "tradeIns"
    DOCUMENTS = "documents"


class DuplicateAction(str, enum.Enum):
    """How an import resolves a VIN collision with a live record."""
    SKIP = "skip"
    OVERWRITE = "overwrite"
