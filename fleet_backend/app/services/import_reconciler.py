"""
Snapshot import reconciler.

Merges a previously exported snapshot into the live store, matching records
by VIN and resolving duplicates by skipping or overwriting them.

Kinds are processed trade-ins first, then inventory, then sold vehicles,
then document metadata, so that references to trade-ins and vehicles can be
remapped to the ids they received in this store. Each record is committed in
its own unit of work: one bad record is reported and the rest still import.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.config import settings
from fleet_backend.app.core.exceptions import AppException, FormatError, ValidationError
from fleet_backend.app.models.document import Document
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.models.snapshot_enums import DuplicateAction, EntityKind
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.snapshot import (
    DocumentSnapshotRecord,
    ImportKindResult,
    ImportRecordError,
    ImportResponse,
    ImportResults,
    ImportSummary,
    SoldVehicleSnapshotRecord,
    TradeInSnapshotRecord,
    VehicleSnapshotRecord,
)
from fleet_backend.app.services.entity_store import MODEL_BY_KIND, EntityStore

logger = logging.getLogger(__name__)


IMPORT_ORDER = (
    EntityKind.TRADE_INS,
    EntityKind.INVENTORY,
    EntityKind.SOLD_VEHICLES,
    EntityKind.DOCUMENTS,
)

RECORD_SCHEMAS = {
    EntityKind.INVENTORY: VehicleSnapshotRecord,
    EntityKind.SOLD_VEHICLES: SoldVehicleSnapshotRecord,
    EntityKind.TRADE_INS: TradeInSnapshotRecord,
    EntityKind.DOCUMENTS: DocumentSnapshotRecord,
}

RESULT_FIELDS = {
    EntityKind.INVENTORY: "inventory",
    EntityKind.SOLD_VEHICLES: "sold_vehicles",
    EntityKind.TRADE_INS: "trade_ins",
    EntityKind.DOCUMENTS: "documents",
}

# Text columns stored as "" rather than NULL
BLANK_TEXT_FIELDS = {
    EntityKind.INVENTORY: ("trim", "color", "fleet_company", "operation_company"),
    EntityKind.SOLD_VEHICLES: ("trim", "color", "fleet_company", "operation_company"),
    EntityKind.TRADE_INS: ("trim", "notes"),
}


class Outcome(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"


def validate_envelope(snapshot: Any) -> None:
    """
    Check the snapshot envelope before anything is written.

    Raises:
        FormatError: Not an object, wrong source tag, no entity arrays, or
            an entity key holding something other than a list
    """
    if not isinstance(snapshot, dict):
        raise FormatError("No data provided")

    export_info = snapshot.get("exportInfo")
    source = export_info.get("source") if isinstance(export_info, dict) else None
    if source != settings.export_source:
        raise FormatError(
            f"Invalid export file. Expected a {settings.export_source} export.",
            details={"source": source},
        )

    present = [kind.value for kind in IMPORT_ORDER if snapshot.get(kind.value) is not None]
    if not present:
        raise FormatError("Export file contains no data to import")

    for key in present:
        if not isinstance(snapshot[key], list):
            raise FormatError(f"'{key}' must be a list", details={"key": key})


def snapshot_vehicle_ids(snapshot: Dict[str, Any]) -> Set[int]:
    """Ids of every inventory and sold record in a snapshot, valid or not."""
    ids = set()
    for kind in (EntityKind.INVENTORY, EntityKind.SOLD_VEHICLES):
        for raw in snapshot.get(kind.value) or []:
            if not isinstance(raw, dict):
                continue
            try:
                ids.add(int(raw.get("id")))
            except (TypeError, ValueError):
                continue
    return ids


def describe_error(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'record'}: {error['msg']}"
            for error in exc.errors()
        )
    if isinstance(exc, AppException):
        return exc.message
    return f"{type(exc).__name__}: {exc}"


class ImportReconciler:
    """Imports a snapshot into the live store."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = EntityStore(session)

    async def reconcile(
        self,
        snapshot: Dict[str, Any],
        duplicate_action: DuplicateAction = DuplicateAction.SKIP,
        dry_run: bool = False,
    ) -> ImportResponse:
        """
        Import every record of a snapshot.

        Args:
            snapshot: Parsed export document
            duplicate_action: What to do when a record's VIN already exists
                (overwrite replaces only the fields present in the snapshot
                record; fields it omits keep their live values)
            dry_run: Compute the results but roll every record back

        Returns:
            ImportResponse with per-kind counts and record errors

        Raises:
            FormatError: Invalid envelope (nothing is written)
        """
        validate_envelope(snapshot)
        duplicate_action = DuplicateAction(duplicate_action)

        results = ImportResults()
        # snapshot id -> live id, per kind
        id_maps: Dict[EntityKind, Dict[Any, Any]] = {kind: {} for kind in IMPORT_ORDER}
        owner_ids = snapshot_vehicle_ids(snapshot)

        for kind in IMPORT_ORDER:
            kind_result: ImportKindResult = getattr(results, RESULT_FIELDS[kind])
            for index, raw in enumerate(snapshot.get(kind.value) or []):
                try:
                    outcome, snapshot_id, live_id = await self._reconcile_record(
                        kind, raw, duplicate_action, id_maps, dry_run, owner_ids
                    )
                except (PydanticValidationError, AppException, SQLAlchemyError) as exc:
                    logger.warning("Import of %s[%d] failed: %s", kind.value, index, exc)
                    kind_result.errors.append(
                        ImportRecordError(
                            index=index,
                            vin=raw.get("vin") if isinstance(raw, dict) else None,
                            record_id=str(raw["id"]) if isinstance(raw, dict) and raw.get("id") is not None else None,
                            error=describe_error(exc),
                        )
                    )
                    continue

                if outcome is Outcome.IMPORTED:
                    kind_result.imported += 1
                else:
                    kind_result.skipped += 1
                if snapshot_id is not None:
                    id_maps[kind][snapshot_id] = live_id

        per_kind = [getattr(results, RESULT_FIELDS[kind]) for kind in IMPORT_ORDER]
        summary = ImportSummary(
            total_imported=sum(result.imported for result in per_kind),
            total_skipped=sum(result.skipped for result in per_kind),
            total_errors=sum(len(result.errors) for result in per_kind),
        )
        logger.info(
            "Import %s: %d imported, %d skipped, %d errors (duplicates: %s)",
            "dry run" if dry_run else "complete",
            summary.total_imported,
            summary.total_skipped,
            summary.total_errors,
            duplicate_action.value,
        )
        return ImportResponse(success=True, dry_run=dry_run, summary=summary, results=results)

    async def _reconcile_record(
        self,
        kind: EntityKind,
        raw: Any,
        duplicate_action: DuplicateAction,
        id_maps: Dict[EntityKind, Dict[Any, Any]],
        dry_run: bool,
        owner_ids: Set[int],
    ) -> Tuple[Outcome, Optional[Any], Any]:
        record = RECORD_SCHEMAS[kind].model_validate(raw)

        async with self.store.transaction(dry_run=dry_run):
            if kind is EntityKind.DOCUMENTS:
                return await self._reconcile_document(record, id_maps, owner_ids)
            return await self._reconcile_keyed(kind, record, duplicate_action, id_maps)

    async def _reconcile_keyed(
        self,
        kind: EntityKind,
        record: Any,
        duplicate_action: DuplicateAction,
        id_maps: Dict[EntityKind, Dict[Any, Any]],
    ) -> Tuple[Outcome, Optional[Any], Any]:
        if kind is EntityKind.INVENTORY and record.status is VehicleStatus.SOLD:
            raise ValidationError("Sold vehicles belong in soldVehicles, not inventory")

        existing = await self.store.find_by_vin(kind, record.vin)
        if existing is not None:
            if duplicate_action is DuplicateAction.SKIP:
                return Outcome.SKIPPED, record.id, existing.id
            # Overwrite only what the snapshot carries; the live id stays
            for name, value in self._column_values(kind, record, id_maps, only_set=True).items():
                setattr(existing, name, value)
            await self.session.flush()
            return Outcome.IMPORTED, record.id, existing.id

        values = self._column_values(kind, record, id_maps, only_set=False)
        if values.get("date_added") is None:
            values["date_added"] = utcnow()
        instance = MODEL_BY_KIND[kind](**values)
        if kind is not EntityKind.TRADE_INS:
            instance.id = await self.store.next_vehicle_id()
        await self.store.put(kind, instance)
        return Outcome.IMPORTED, record.id, instance.id

    async def _reconcile_document(
        self,
        record: DocumentSnapshotRecord,
        id_maps: Dict[EntityKind, Dict[Any, Any]],
        owner_ids: Set[int],
    ) -> Tuple[Outcome, Optional[Any], Any]:
        if await self.store.get(EntityKind.DOCUMENTS, record.id) is not None:
            return Outcome.SKIPPED, record.id, record.id

        vehicle_id = record.vehicle_id
        if vehicle_id in id_maps[EntityKind.INVENTORY]:
            vehicle_id = id_maps[EntityKind.INVENTORY][vehicle_id]
        elif vehicle_id in id_maps[EntityKind.SOLD_VEHICLES]:
            vehicle_id = id_maps[EntityKind.SOLD_VEHICLES][vehicle_id]
        elif vehicle_id in owner_ids:
            # The owning record failed; its snapshot id may name an unrelated live vehicle
            raise ValidationError(
                f"Vehicle {vehicle_id} for this document was not imported",
                details={"vehicle_id": vehicle_id},
            )

        document = Document(
            id=record.id,
            vehicle_id=vehicle_id,
            file_name=record.file_name,
            file_size=record.file_size,
            storage_locator=record.storage_locator,
            upload_date=record.upload_date or utcnow(),
        )
        await self.store.put(EntityKind.DOCUMENTS, document)
        return Outcome.IMPORTED, record.id, record.id

    @staticmethod
    def _column_values(
        kind: EntityKind,
        record: Any,
        id_maps: Dict[EntityKind, Dict[Any, Any]],
        only_set: bool,
    ) -> Dict[str, Any]:
        """Column values for a snapshot record, with trade-in references remapped."""
        values = record.model_dump(exclude_unset=only_set, exclude={"id"})

        for name in BLANK_TEXT_FIELDS[kind]:
            if name in values and values[name] is None:
                values[name] = ""
        if only_set and values.get("date_added", True) is None:
            del values["date_added"]

        if kind is EntityKind.SOLD_VEHICLES:
            values["status"] = VehicleStatus.SOLD
        if kind is EntityKind.TRADE_INS and "picked_up" in values and not values["picked_up"]:
            values["picked_up_date"] = None

        trade_in_id = values.get("trade_in_id")
        if trade_in_id is not None:
            values["trade_in_id"] = id_maps[EntityKind.TRADE_INS].get(trade_in_id, trade_in_id)
        return values
