"""
Id sequence database model.

One row per named counter. Counters only move forward, so an id handed out
once is never handed out again, even after its row is deleted.
"""

from sqlalchemy import Column, Integer, String
from fleet_backend.app.db.session import Base


VEHICLE_ID_SEQUENCE = "vehicle"


class IdSequence(Base):
    """
    Named monotonic counter.

    ``value`` is the last id issued.
    """
    __tablename__ = "id_sequences"
    
    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False)
    
    def __repr__(self):
        return f"<IdSequence(name='{self.name}', value={self.value})>"
