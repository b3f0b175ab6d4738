"""
Import / Export API Endpoints.

Full-dataset snapshots for backup, restore and moving data between
installations.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from fleet_backend.app.db.session import get_db
from fleet_backend.app.schemas.snapshot import ExportSnapshot, ImportRequest, ImportResponse
from fleet_backend.app.core.dependencies import get_current_user
from fleet_backend.app.core.exceptions import FormatError
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.export_serializer import ExportSerializer
from fleet_backend.app.services.import_reconciler import ImportReconciler

router = APIRouter(tags=["Import / Export"])


@router.get("/export", response_model=ExportSnapshot)
async def export_data(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Export inventory, sold vehicles, trade-ins and document metadata.

    Document files themselves are not included.
    """
    snapshot = await ExportSerializer(db).export_all()

    await log_event(
        db=db,
        action=AuditAction.DATA_EXPORTED,
        actor_username=current_user["sub"],
        metadata={
            "inventory": len(snapshot.inventory),
            "sold_vehicles": len(snapshot.sold_vehicles),
            "trade_ins": len(snapshot.trade_ins),
            "documents": len(snapshot.documents)
        }
    )

    return snapshot


@router.post("/import", response_model=ImportResponse)
async def import_data(
    request: ImportRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Import a snapshot produced by /export.

    Records are matched by VIN; `duplicateAction` decides whether a match is
    skipped or overwritten. Malformed records are reported in `errors` and
    do not stop the rest. With `dryRun` nothing is persisted.
    """
    if request.data is None:
        raise FormatError("No data provided")

    response = await ImportReconciler(db).reconcile(
        request.data,
        duplicate_action=request.duplicate_action,
        dry_run=request.dry_run
    )

    if not request.dry_run:
        await log_event(
            db=db,
            action=AuditAction.DATA_IMPORTED,
            actor_username=current_user["sub"],
            metadata={
                "duplicate_action": request.duplicate_action.value,
                **response.summary.model_dump()
            }
        )

    return response
