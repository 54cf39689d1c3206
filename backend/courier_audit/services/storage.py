"""
Key/value storage backing audit history and weight data.

Write failures are reported through return values (False) so callers can skip
persistence. A failed read raises StorageUnavailable, which is never the same
thing as a missing key (None); callers must not overwrite a value they could
not read.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from courier_audit.models import StorageEntry

logger = logging.getLogger(__name__)


class StorageUnavailable(Exception):
    """The backing store could not be read."""


class Storage(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        """Stored bytes, None for a missing key. Raises StorageUnavailable."""
        ...

    def set(self, key: str, value: bytes) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...


class InMemoryStorage:
    """Process-local store, optionally bounded in bytes to mimic a quota."""

    def __init__(self, max_bytes: Optional[int] = None):
        self._data: Dict[str, bytes] = {}
        self._lock = Lock()
        self.max_bytes = max_bytes

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> bool:
        with self._lock:
            others = sum(len(v) for k, v in self._data.items() if k != key)
            if self.max_bytes is not None and others + len(value) > self.max_bytes:
                logger.warning("In-memory storage quota exceeded writing %s (%d bytes)", key, len(value))
                return False
            self._data[key] = value
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            self._data.pop(key, None)
            return True


class SqlStorage:
    """Stores each key as one row of the storage_entries table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[bytes]:
        try:
            entry = self.db.query(StorageEntry).filter(StorageEntry.key == key).first()
        except SQLAlchemyError as e:
            logger.warning("Storage read failed for %s: %s", key, e)
            self.db.rollback()
            raise StorageUnavailable(f"Could not read {key}") from e
        return bytes(entry.value) if entry else None

    def set(self, key: str, value: bytes) -> bool:
        try:
            entry = self.db.query(StorageEntry).filter(StorageEntry.key == key).first()
            if entry:
                entry.value = value
                entry.updated_at = datetime.utcnow()
            else:
                self.db.add(StorageEntry(key=key, value=value))
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning("Storage write failed for %s: %s", key, e)
            self.db.rollback()
            return False

    def delete(self, key: str) -> bool:
        try:
            self.db.query(StorageEntry).filter(StorageEntry.key == key).delete()
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning("Storage delete failed for %s: %s", key, e)
            self.db.rollback()
            return False


def load_json_list(storage: Storage, key: str) -> List[Any]:
    """
    Decode a stored JSON array; missing or corrupt values read as [].

    StorageUnavailable from the store propagates.
    """
    raw = storage.get(key)
    if not raw:
        return []
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning("Discarding unreadable value under %s: %s", key, e)
        return []
    return data if isinstance(data, list) else []


def save_json_list(storage: Storage, key: str, items: List[Any]) -> bool:
    return storage.set(key, json.dumps(items).encode("utf-8"))
