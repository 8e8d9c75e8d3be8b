from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.cache_entry import CacheEntry


class CacheRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> CacheEntry | None:
        return self.db.query(CacheEntry).filter(CacheEntry.key == key).first()

    def upsert(self, key: str, value: Any, expires_at: datetime) -> CacheEntry:
        entry = self.get(key)
        if entry is None:
            entry = CacheEntry(key=key, value=value, expires_at=expires_at)
            self.db.add(entry)
        else:
            entry.value = value
            entry.expires_at = expires_at  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(entry)
        return entry

    def delete(self, key: str) -> bool:
        deleted = self.db.query(CacheEntry).filter(CacheEntry.key == key).delete()
        commit(self.db)
        return deleted > 0

    def delete_expired(self, now: datetime) -> int:
        deleted = self.db.query(CacheEntry).filter(CacheEntry.expires_at <= now).delete()
        commit(self.db)
        return deleted
