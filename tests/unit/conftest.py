"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from reviewdash.cache import Cache

if TYPE_CHECKING:
    from tests.conftest import FakeClock


@pytest.fixture()
async def db():
    async with aiosqlite.connect(":memory:") as conn:
        yield conn


@pytest.fixture()
async def cache(db: aiosqlite.Connection, clock: FakeClock):
    """In-memory SQLite cache driven by the fake clock."""
    c = Cache(db, clock=clock)
    await c.init_db()
    return c


@pytest.fixture()
async def closed_db():
    """A connection that has already been closed; every call raises ValueError."""
    conn = await aiosqlite.connect(":memory:")
    await conn.close()
    return conn
