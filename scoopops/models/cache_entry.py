from sqlalchemy import JSON, Column, DateTime, String, func

from scoopops.core.database import Base


class CacheEntry(Base):
    """Key-value cache row with an absolute expiry."""

    __tablename__ = "cache_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
