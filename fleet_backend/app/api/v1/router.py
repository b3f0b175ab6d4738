"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleet_backend.app.api.v1.endpoints import (
    inventory, sold_vehicles, trade_ins, documents, data_transfer
)

router = APIRouter()

# Active inventory, status changes and sold-conversion
router.include_router(inventory.router)

# Sold vehicles and trade-ins
router.include_router(sold_vehicles.router)
router.include_router(trade_ins.router)

# Document metadata
router.include_router(documents.router)

# Snapshot export / import
router.include_router(data_transfer.router)
