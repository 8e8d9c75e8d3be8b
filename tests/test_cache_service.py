"""Tests for the database-backed expiring cache."""

from datetime import UTC, datetime, timedelta

from scoopops.services.cache_service import CacheService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestCacheService:
    def test_set_and_get(self, db_session):
        cache = CacheService(db_session)
        cache.set("report", {"count": 2, "zips": ["78701"]}, ttl_seconds=60, now=NOW)

        assert cache.get("report", now=NOW) == {"count": 2, "zips": ["78701"]}

    def test_missing_key(self, db_session):
        assert CacheService(db_session).get("nope") is None

    def test_expired_entry_is_not_returned(self, db_session):
        cache = CacheService(db_session)
        cache.set("report", {"count": 1}, ttl_seconds=60, now=NOW)

        assert cache.get("report", now=NOW + timedelta(seconds=59)) == {"count": 1}
        assert cache.get("report", now=NOW + timedelta(seconds=60)) is None

    def test_set_overwrites(self, db_session):
        cache = CacheService(db_session)
        cache.set("report", {"count": 1}, ttl_seconds=60, now=NOW)
        cache.set("report", {"count": 5}, ttl_seconds=60, now=NOW)

        assert cache.get("report", now=NOW) == {"count": 5}

    def test_delete(self, db_session):
        cache = CacheService(db_session)
        cache.set("report", {"count": 1}, ttl_seconds=60, now=NOW)

        assert cache.delete("report") is True
        assert cache.delete("report") is False
        assert cache.get("report", now=NOW) is None

    def test_purge_expired(self, db_session):
        cache = CacheService(db_session)
        cache.set("old", 1, ttl_seconds=10, now=NOW)
        cache.set("fresh", 2, ttl_seconds=3600, now=NOW)

        assert cache.purge_expired(now=NOW + timedelta(minutes=5)) == 1
        assert cache.get("fresh", now=NOW) == 2
