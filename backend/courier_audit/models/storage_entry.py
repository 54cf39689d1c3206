"""
Storage entry model - one opaque value per key for history and weight data.
"""
from sqlalchemy import Column, String, DateTime, LargeBinary
from datetime import datetime
from courier_audit.db.database import Base


class StorageEntry(Base):
    __tablename__ = "storage_entries"

    key = Column(String, primary_key=True)  # e.g., "courier_audit_history"
    value = Column(LargeBinary, nullable=False)  # UTF-8 JSON array
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
