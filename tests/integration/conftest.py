"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite and a real upstream
httpx client (mocked per test with respx), mounted on the FastAPI app and
driven through ``httpx.ASGITransport``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from reviewdash.cache import Cache
from reviewdash.config import Settings
from reviewdash.fetcher import GuardedFetcher
from reviewdash.lockout import LockoutGuard, SqliteLockoutStore
from reviewdash.resources import BusinessApi
from reviewdash.server import ACCESS_TOKEN_COOKIE, create_app
from reviewdash.state import AppState

if TYPE_CHECKING:
    from tests.conftest import FakeClock


@pytest.fixture()
async def app_state(clock: FakeClock):
    settings = Settings()
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db, default_ttl_seconds=settings.cache.ttl_seconds, clock=clock)
        await cache.init_db()
        guard = LockoutGuard(
            SqliteLockoutStore(db),
            upstream=settings.upstream.name,
            cooldown_seconds=settings.cache.lockout_seconds,
            clock=clock,
        )
        async with httpx.AsyncClient() as upstream:
            yield AppState(
                settings=settings,
                cache=cache,
                guard=guard,
                http_client=upstream,
                api=BusinessApi(cache, GuardedFetcher(upstream, guard), settings.upstream),
            )


@pytest.fixture()
def app(app_state: AppState):
    application = create_app(app_state.settings)
    application.state.reviewdash = app_state
    return application


@pytest.fixture()
async def anonymous_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        cookies={ACCESS_TOKEN_COOKIE: "tok-abc"},
    ) as c:
        yield c
