"""
Entity store and unit of work.

Typed access to the four persisted collections (inventory, sold vehicles,
trade-ins, document metadata) over one AsyncSession. Every multi-step
mutation runs inside a UnitOfWork: all of its writes become visible together
or none of them do.
"""

from typing import Any, Dict, List, Optional, Type

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import NotFoundError
from fleet_backend.app.models.document import Document
from fleet_backend.app.models.id_sequence import VEHICLE_ID_SEQUENCE, IdSequence
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.sold_vehicle import SoldVehicle
from fleet_backend.app.models.trade_in import TradeIn
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.schemas.base import normalize_vin


MODEL_BY_KIND: Dict[EntityKind, Type[Any]] = {
    EntityKind.INVENTORY: Vehicle,
    EntityKind.SOLD_VEHICLES: SoldVehicle,
    EntityKind.TRADE_INS: TradeIn,
    EntityKind.DOCUMENTS: Document,
}

RESOURCE_NAMES: Dict[EntityKind, str] = {
    EntityKind.INVENTORY: "Vehicle",
    EntityKind.SOLD_VEHICLES: "Sold vehicle",
    EntityKind.TRADE_INS: "Trade-in",
    EntityKind.DOCUMENTS: "Document",
}


class UnitOfWork:
    """
    Transaction scope over a session.

    Commits on a clean exit and rolls back when the block raises. With
    ``dry_run`` the block always rolls back, so its writes are computed
    but never persisted.

    Objects loaded in the block are expired by a rollback; read any ids
    you need before leaving it.
    """

    def __init__(self, session: AsyncSession, dry_run: bool = False):
        self.session = session
        self.dry_run = dry_run

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None and not self.dry_run:
            await self.session.commit()
        else:
            await self.session.rollback()
        return False


class EntityStore:
    """Keyed access to inventory, sold vehicles, trade-ins and documents."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def transaction(self, dry_run: bool = False) -> UnitOfWork:
        return UnitOfWork(self.session, dry_run=dry_run)

    async def get(self, kind: EntityKind, record_id: Any) -> Optional[Any]:
        return await self.session.get(MODEL_BY_KIND[kind], record_id)

    async def require(self, kind: EntityKind, record_id: Any) -> Any:
        """Get a record or raise NotFoundError."""
        record = await self.get(kind, record_id)
        if record is None:
            raise NotFoundError(RESOURCE_NAMES[kind], record_id)
        return record

    async def list(self, kind: EntityKind) -> List[Any]:
        """All records of a kind, newest first (documents by upload date)."""
        model = MODEL_BY_KIND[kind]
        if kind is EntityKind.DOCUMENTS:
            order = (model.upload_date.desc(), model.id)
        else:
            order = (model.date_added.desc(), model.id.desc())
        result = await self.session.execute(select(model).order_by(*order))
        return list(result.scalars().all())

    async def count(self, kind: EntityKind) -> int:
        model = MODEL_BY_KIND[kind]
        result = await self.session.execute(select(func.count()).select_from(model))
        return result.scalar_one()

    async def put(self, kind: EntityKind, record: Any) -> Any:
        """Add or update a record and flush so generated ids are available."""
        if not isinstance(record, MODEL_BY_KIND[kind]):
            raise TypeError(f"Expected {MODEL_BY_KIND[kind].__name__}, got {type(record).__name__}")
        self.session.add(record)
        await self.session.flush()
        return record

    async def delete(self, kind: EntityKind, record_id: Any) -> int:
        """
        Delete a record by id.

        Returns:
            Number of rows removed (0 if the record was already gone)
        """
        model = MODEL_BY_KIND[kind]
        result = await self.session.execute(delete(model).where(model.id == record_id))
        return result.rowcount

    async def find_by_vin(self, kind: EntityKind, vin: Optional[str]) -> Optional[Any]:
        """
        Find a record by VIN, ignoring case and surrounding whitespace.

        When several records share the VIN the lowest id wins.
        """
        vin = normalize_vin(vin)
        if not vin or kind is EntityKind.DOCUMENTS:
            return None
        model = MODEL_BY_KIND[kind]
        result = await self.session.execute(
            select(model)
            .where(func.upper(func.trim(model.vin)) == vin)
            .order_by(model.id)
            .limit(1)
        )
        return result.scalars().first()

    async def list_documents_for(self, vehicle_id: int) -> List[Document]:
        result = await self.session.execute(
            select(Document)
            .where(Document.vehicle_id == vehicle_id)
            .order_by(Document.upload_date.desc(), Document.id)
        )
        return list(result.scalars().all())

    async def next_vehicle_id(self) -> int:
        """
        Issue the next id in the id space shared by inventory and sold vehicles.

        Ids come from a counter that only moves forward: a deleted vehicle's
        id is never issued again, so orphaned documents stay orphaned. A
        sold vehicle keeps its inventory id and draws nothing here.

        The counter row is updated in the caller's transaction, which also
        serializes concurrent callers on it.
        """
        sequences = IdSequence.__table__
        result = await self.session.execute(
            update(sequences)
            .where(sequences.c.name == VEHICLE_ID_SEQUENCE)
            .values(value=sequences.c.value + 1)
            .returning(sequences.c.value)
        )
        issued = result.scalar_one_or_none()
        if issued is not None:
            return issued

        # First id issued by this database: continue after any existing rows
        inventory_max = (await self.session.execute(select(func.max(Vehicle.id)))).scalar()
        sold_max = (await self.session.execute(select(func.max(SoldVehicle.id)))).scalar()
        issued = max(inventory_max or 0, sold_max or 0) + 1
        await self.session.execute(
            sequences.insert().values(name=VEHICLE_ID_SEQUENCE, value=issued)
        )
        return issued
