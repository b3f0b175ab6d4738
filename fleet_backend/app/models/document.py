"""
Document metadata database model.

The binary payload lives in external storage; only its opaque locator is
kept here.
"""

import secrets

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.mixins import utcnow


def new_document_id() -> str:
    return secrets.token_hex(16)


class Document(Base):
    """
    Document metadata model.
    
    ``vehicle_id`` points at a Vehicle or SoldVehicle id without a foreign
    key: deleting the vehicle leaves its documents orphaned.
    """
    __tablename__ = "documents"
    
    id = Column(String(32), primary_key=True, default=new_document_id)
    vehicle_id = Column(Integer, nullable=False, index=True)
    
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    storage_locator = Column(String(500), nullable=False, default="")
    upload_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Document(id='{self.id}', vehicle_id={self.vehicle_id}, file='{self.file_name}')>"
