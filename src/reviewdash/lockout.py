"""Upstream lockout guard.

Once the upstream answers 429, every guarded call is refused locally for a
fixed cool-down so that retries do not burn the shared quota. The upstream
quota resets on a wall-clock window, so the local cool-down ignores any
``Retry-After`` the upstream sends.

State lives behind ``LockoutStore`` (one named record per upstream). Expiry is
checked lazily on each ``check``; nothing runs in the background. Store
failures are logged and read as "open".
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Protocol

import aiosqlite
import structlog

from reviewdash.clock import Clock, utcnow
from reviewdash.errors import Failure
from reviewdash.models.cache import LockoutState

log = structlog.get_logger()

DEFAULT_COOLDOWN_SECONDS = 60


class LockoutStore(Protocol):
    async def get(self, upstream: str) -> LockoutState | None: ...

    async def set(self, state: LockoutState) -> None: ...

    async def clear(self, upstream: str) -> None: ...


class MemoryLockoutStore:
    """Process-local store. Used in tests and single-worker setups."""

    def __init__(self) -> None:
        self._states: dict[str, LockoutState] = {}

    async def get(self, upstream: str) -> LockoutState | None:
        return self._states.get(upstream)

    async def set(self, state: LockoutState) -> None:
        self._states[state.upstream] = state

    async def clear(self, upstream: str) -> None:
        self._states.pop(upstream, None)


class SqliteLockoutStore:
    """Lockout records in the cache database, shared by every worker using it."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get(self, upstream: str) -> LockoutState | None:
        try:
            cursor = await self._db.execute(
                "SELECT upstream, expires_at, set_at FROM lockout WHERE upstream = ?",
                (upstream,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return LockoutState(
                upstream=row[0],
                expires_at=datetime.fromisoformat(row[1]),
                set_at=datetime.fromisoformat(row[2]),
            )
        except (aiosqlite.Error, ValueError):
            log.warning("lockout_read_error", upstream=upstream, exc_info=True)
            return None

    async def set(self, state: LockoutState) -> None:
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO lockout (upstream, expires_at, set_at) VALUES (?, ?, ?)",
                (state.upstream, state.expires_at.isoformat(), state.set_at.isoformat()),
            )
            await self._db.commit()
        except (aiosqlite.Error, ValueError):
            log.warning("lockout_write_error", upstream=state.upstream, exc_info=True)

    async def clear(self, upstream: str) -> None:
        try:
            await self._db.execute("DELETE FROM lockout WHERE upstream = ?", (upstream,))
            await self._db.commit()
        except (aiosqlite.Error, ValueError):
            log.warning("lockout_write_error", upstream=upstream, exc_info=True)


class LockoutGuard:
    def __init__(
        self,
        store: LockoutStore,
        upstream: str = "google",
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._clock = clock
        self.upstream = upstream
        self.cooldown_seconds = cooldown_seconds

    async def check(self) -> Failure | None:
        """Return a quota failure while tripped, ``None`` when calls may proceed."""
        state = await self._store.get(self.upstream)
        if state is None:
            return None

        remaining = (state.expires_at - self._clock()).total_seconds()
        if remaining <= 0:
            await self._store.clear(self.upstream)
            log.info("lockout_cleared", upstream=self.upstream)
            return None

        seconds = math.ceil(remaining)
        log.warning("lockout_blocked", upstream=self.upstream, remaining_seconds=seconds)
        return Failure.quota(f"Rate limit active. Please wait {seconds} seconds.", seconds)

    async def trip(self) -> LockoutState:
        """Start a fresh cool-down, replacing any active one."""
        now = self._clock()
        state = LockoutState(
            upstream=self.upstream,
            expires_at=now + timedelta(seconds=self.cooldown_seconds),
            set_at=now,
        )
        await self._store.set(state)
        log.warning(
            "lockout_tripped", upstream=self.upstream, cooldown_seconds=self.cooldown_seconds
        )
        return state
