"""
Snapshot export.

Serializes every entity kind into one camelCase document that the import
reconciler (and earlier versions of the product) can read back.
"""

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.config import settings
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.schemas.document import DocumentResponse
from fleet_backend.app.schemas.snapshot import ExportInfo, ExportSnapshot
from fleet_backend.app.schemas.sold_vehicle import SoldVehicleResponse
from fleet_backend.app.schemas.trade_in import TradeInResponse
from fleet_backend.app.schemas.vehicle import VehicleResponse
from fleet_backend.app.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


class ExportSerializer:
    """Builds full-dataset snapshots."""

    def __init__(self, session: AsyncSession):
        self.store = EntityStore(session)

    async def export_all(self) -> ExportSnapshot:
        """Snapshot of inventory, sold vehicles, trade-ins and document metadata."""
        inventory = await self.store.list(EntityKind.INVENTORY)
        sold_vehicles = await self.store.list(EntityKind.SOLD_VEHICLES)
        trade_ins = await self.store.list(EntityKind.TRADE_INS)
        documents = await self.store.list(EntityKind.DOCUMENTS)

        snapshot = ExportSnapshot(
            export_info=ExportInfo(
                source=settings.export_source,
                version=settings.export_version,
                export_date=utcnow(),
            ),
            inventory=[VehicleResponse.model_validate(v) for v in inventory],
            sold_vehicles=[SoldVehicleResponse.model_validate(v) for v in sold_vehicles],
            trade_ins=[TradeInResponse.model_validate(t) for t in trade_ins],
            documents=[DocumentResponse.model_validate(d) for d in documents],
        )
        logger.info(
            "Exported %d inventory, %d sold, %d trade-ins, %d documents",
            len(inventory), len(sold_vehicles), len(trade_ins), len(documents),
        )
        return snapshot

    async def export_json(self) -> Dict[str, Any]:
        """Snapshot as a JSON-ready dict with camelCase keys."""
        snapshot = await self.export_all()
        return snapshot.model_dump(mode="json", by_alias=True)
