"""Key-value cache with expiry, stored in the database."""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from scoopops.models.shared import as_utc, utc_now
from scoopops.repositories.cache_repository import CacheRepository

logger = logging.getLogger(__name__)


class CacheService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CacheRepository(db)

    def get(self, key: str, now: datetime | None = None) -> Any | None:
        """Return the cached JSON value, or None when missing or expired."""
        entry = self.repo.get(key)
        if entry is None:
            return None
        expires_at = as_utc(entry.expires_at)  # type: ignore[arg-type]
        if expires_at is not None and expires_at <= (now or utc_now()):
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int, now: datetime | None = None) -> None:
        expires_at = (now or utc_now()) + timedelta(seconds=ttl_seconds)
        self.repo.upsert(key, value, expires_at)

    def delete(self, key: str) -> bool:
        return self.repo.delete(key)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete expired entries. Returns the number removed."""
        deleted = self.repo.delete_expired(now or utc_now())
        if deleted:
            logger.info("Purged %d expired cache entries", deleted)
        return deleted
