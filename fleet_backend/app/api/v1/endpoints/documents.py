"""
Document Metadata API Endpoints.

Files live in external storage; this API only records what was stored,
for which vehicle, and where.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.document import Document
from fleet_backend.app.models.snapshot_enums import EntityKind
from fleet_backend.app.models.mixins import utcnow
from fleet_backend.app.schemas.document import DocumentRegister, DocumentResponse, DocumentListResponse
from fleet_backend.app.core.dependencies import get_current_user
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.entity_store import EntityStore

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("/vehicle/{vehicle_id}", response_model=DocumentListResponse)
async def list_vehicle_documents(
    vehicle_id: int = Path(..., description="Vehicle or sold vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List document metadata for a vehicle, newest upload first."""
    documents = await EntityStore(db).list_documents_for(vehicle_id)
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents],
        total=len(documents)
    )


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str = Path(..., description="Document ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await EntityStore(db).require(EntityKind.DOCUMENTS, document_id)
    return DocumentResponse.model_validate(document)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def register_document(
    document_data: DocumentRegister,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register metadata for a document already written to storage.

    The vehicle id is not checked: documents may outlive their vehicle.
    """
    store = EntityStore(db)
    async with store.transaction():
        document = Document(
            vehicle_id=document_data.vehicle_id,
            file_name=document_data.file_name,
            file_size=document_data.file_size,
            storage_locator=document_data.storage_locator,
            upload_date=utcnow()
        )
        await store.put(EntityKind.DOCUMENTS, document)
    await db.refresh(document)

    await log_event(
        db=db,
        action=AuditAction.DOCUMENT_REGISTERED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.DOCUMENTS.value,
        entity_id=document.id,
        metadata={"vehicle_id": document.vehicle_id, "file_name": document.file_name}
    )

    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str = Path(..., description="Document ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete document metadata. Removing the stored file is up to storage."""
    store = EntityStore(db)
    async with store.transaction():
        document = await store.require(EntityKind.DOCUMENTS, document_id)
        locator = document.storage_locator
        await store.delete(EntityKind.DOCUMENTS, document_id)

    await log_event(
        db=db,
        action=AuditAction.DOCUMENT_DELETED,
        actor_username=current_user["sub"],
        entity_kind=EntityKind.DOCUMENTS.value,
        entity_id=document_id,
        metadata={"storage_locator": locator}
    )
