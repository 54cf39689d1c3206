"""
Shared FastAPI dependencies.
"""
from fastapi import Depends
from sqlalchemy.orm import Session
from courier_audit.db.database import get_db, settings
from courier_audit.services.audit_history import AuditHistory
from courier_audit.services.storage import SqlStorage, Storage
from courier_audit.services.weight_regression import WeightDataStore


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return SqlStorage(db)


def get_history(storage: Storage = Depends(get_storage)) -> AuditHistory:
    return AuditHistory(storage, max_records=settings.history_max_records)


def get_weight_store(storage: Storage = Depends(get_storage)) -> WeightDataStore:
    return WeightDataStore(storage, max_records=settings.weight_max_records)
