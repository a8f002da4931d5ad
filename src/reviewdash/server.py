"""HTTP routes consumed by the dashboard.

Each route reads the bearer credential from the ``google_access_token`` cookie
set by the OAuth callback, calls one ``BusinessApi`` operation and returns the
upstream payload untouched. Failures become ``{"error", "kind", "retryAfter"?}``
JSON with the status code of their kind.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any

import aiosqlite
import structlog
from fastapi import Cookie, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from reviewdash import __version__
from reviewdash.cache import Cache
from reviewdash.config import Settings
from reviewdash.errors import ErrorKind, Failure, ReviewDashError
from reviewdash.fetcher import GuardedFetcher, build_http_client
from reviewdash.lockout import LockoutGuard, SqliteLockoutStore
from reviewdash.resources import BusinessApi
from reviewdash.state import AppState

log = structlog.get_logger()

ACCESS_TOKEN_COOKIE = "google_access_token"

AccessToken = Annotated[str | None, Cookie(alias=ACCESS_TOKEN_COOKIE)]


def get_state(request: Request) -> AppState:
    return request.app.state.reviewdash


State = Annotated[AppState, Depends(get_state)]


def _require_token(access_token: str | None) -> str:
    if not access_token:
        raise ReviewDashError(Failure(kind=ErrorKind.UNAUTHENTICATED, message="Not authenticated"))
    return access_token


def _invalid_input(message: str) -> ReviewDashError:
    return ReviewDashError(Failure(kind=ErrorKind.INVALID_INPUT, message=message))


async def _handle_error(request: Request, exc: ReviewDashError) -> JSONResponse:
    failure = exc.failure
    if failure.kind is ErrorKind.UPSTREAM_ERROR:
        log.error("route_upstream_error", path=request.url.path, message=failure.message)
    return JSONResponse(failure.to_body(), status_code=failure.status_code)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db, build_http_client(
        settings.upstream.timeout_seconds
    ) as http_client:
        cache = Cache(db, default_ttl_seconds=settings.cache.ttl_seconds)
        await cache.init_db()
        await cache.cleanup_expired()

        guard = LockoutGuard(
            SqliteLockoutStore(db),
            upstream=settings.upstream.name,
            cooldown_seconds=settings.cache.lockout_seconds,
        )
        api = BusinessApi(cache, GuardedFetcher(http_client, guard), settings.upstream)
        app.state.reviewdash = AppState(
            settings=settings,
            cache=cache,
            guard=guard,
            http_client=http_client,
            api=api,
        )
        log.info("server_started", db_path=str(db_path))
        yield


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="reviewdash", version=__version__, lifespan=_lifespan)
    app.state.settings = settings or Settings()
    app.add_exception_handler(ReviewDashError, _handle_error)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/accounts")
    async def accounts(state: State, access_token: AccessToken = None) -> Any:
        token = _require_token(access_token)
        return await state.api.fetch_accounts(token)

    @app.get("/api/locations")
    async def locations(
        state: State,
        access_token: AccessToken = None,
        account_id: Annotated[str | None, Query(alias="accountId")] = None,
    ) -> Any:
        token = _require_token(access_token)
        if not account_id:
            raise _invalid_input("Account ID is required")
        return await state.api.fetch_locations(token, account_id)

    @app.get("/api/reviews")
    async def reviews(
        state: State,
        access_token: AccessToken = None,
        account_id: Annotated[str | None, Query(alias="accountId")] = None,
        location_id: Annotated[str | None, Query(alias="locationId")] = None,
        page_token: Annotated[str | None, Query(alias="pageToken")] = None,
    ) -> Any:
        token = _require_token(access_token)
        if not account_id or not location_id:
            raise _invalid_input("Account ID and Location ID are required")
        return await state.api.fetch_reviews(token, account_id, location_id, page_token or None)

    return app
