"""SQLite key-value cache for upstream API responses.

All cache operations catch ``aiosqlite.Error`` and ``ValueError`` (payload
decode errors, closed connection) internally and degrade gracefully: read
failures return ``None`` (treated as a cache miss by callers), write failures
are logged and ignored (the fetched payload is still returned). Infrastructure errors never cross the Cache class
boundary.

Expiry is lazy. A read that finds an expired row deletes it and reports a
miss; there is no background sweep. ``cleanup_expired`` exists for a one-off
pass at startup.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any

import aiosqlite
import structlog

from reviewdash.clock import Clock, utcnow
from reviewdash.models.cache import CacheEntry

log = structlog.get_logger()

DEFAULT_TTL_SECONDS = 600

_CREATE_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS api_cache (
    key         TEXT PRIMARY KEY,
    data        TEXT NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
)
"""

_CREATE_LOCKOUT_TABLE = """
CREATE TABLE IF NOT EXISTS lockout (
    upstream    TEXT PRIMARY KEY,
    expires_at  TEXT NOT NULL,
    set_at      TEXT NOT NULL
)
"""

_CREATE_CACHE_INDEX = "CREATE INDEX IF NOT EXISTS idx_api_cache_expires ON api_cache(expires_at)"


class Cache:
    """SQLite-backed response cache keyed by derived cache keys."""

    def __init__(
        self,
        db: aiosqlite.Connection,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = utcnow,
    ) -> None:
        self._db = db
        self._default_ttl = default_ttl_seconds
        self._clock = clock

    @property
    def db(self) -> aiosqlite.Connection:
        return self._db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_CACHE_TABLE)
        await self._db.execute(_CREATE_LOCKOUT_TABLE)
        await self._db.execute(_CREATE_CACHE_INDEX)
        await self._db.commit()

    async def get(self, key: str) -> Any | None:
        """Return the cached payload, or ``None`` on miss, expiry or read failure."""
        entry = await self.get_entry(key)
        return None if entry is None else entry.data

    async def get_entry(self, key: str) -> CacheEntry | None:
        try:
            cursor = await self._db.execute(
                "SELECT key, data, fetched_at, expires_at FROM api_cache WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            expires_at = datetime.fromisoformat(row[3])
            if self._clock() > expires_at:
                await self._db.execute("DELETE FROM api_cache WHERE key = ?", (key,))
                await self._db.commit()
                log.debug("cache_expired", key=key)
                return None

            entry = CacheEntry(
                key=row[0],
                data=json.loads(row[1]),
                fetched_at=datetime.fromisoformat(row[2]),
                expires_at=expires_at,
            )
        except (aiosqlite.Error, ValueError):
            log.warning("cache_read_error", key=key, exc_info=True)
            return None

        log.debug("cache_hit", key=key)
        return entry

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Write an entry. Non-fatal on failure."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        try:
            now = self._clock()
            expires_at = now + timedelta(seconds=ttl)
            await self._db.execute(
                "INSERT OR REPLACE INTO api_cache (key, data, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (key, json.dumps(value), now.isoformat(), expires_at.isoformat()),
            )
            await self._db.commit()
        except (aiosqlite.Error, TypeError, ValueError):
            log.warning("cache_write_error", key=key, exc_info=True)
            return
        log.debug("cache_set", key=key, ttl_seconds=ttl)

    async def delete(self, key: str) -> None:
        """Drop a single entry. Non-fatal on failure."""
        try:
            await self._db.execute("DELETE FROM api_cache WHERE key = ?", (key,))
            await self._db.commit()
        except (aiosqlite.Error, ValueError):
            log.warning("cache_delete_error", key=key, exc_info=True)

    async def cleanup_expired(self) -> None:
        """Delete every entry already past its expiry. Non-fatal on failure."""
        try:
            cursor = await self._db.execute(
                "DELETE FROM api_cache WHERE expires_at < ?", (self._clock().isoformat(),)
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", deleted=deleted)
        except (aiosqlite.Error, ValueError):
            log.warning("cache_cleanup_error", exc_info=True)
