"""Guarded HTTP access to the upstream API.

Every outbound call goes through ``GuardedFetcher.fetch``: the lockout guard is
consulted first (a tripped guard means no network I/O at all), and a 429 from
upstream trips the guard before the quota failure is raised.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from reviewdash.errors import Failure, ReviewDashError
from reviewdash.lockout import LockoutGuard

log = structlog.get_logger()

_QUOTA_STATUS = 429


def build_http_client(timeout_seconds: float = 15.0) -> httpx.AsyncClient:
    """Shared client for all upstream calls."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds, connect=5.0),
        headers={"Accept": "application/json"},
        follow_redirects=False,
    )


def upstream_message(response: httpx.Response) -> str | None:
    """Pull ``error.message`` out of a Google-style JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"] or None
    return None


class GuardedFetcher:
    def __init__(self, client: httpx.AsyncClient, guard: LockoutGuard) -> None:
        self._client = client
        self.guard = guard

    async def fetch(
        self,
        url: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        fallback_message: str = "Upstream request failed",
    ) -> httpx.Response:
        """GET ``url`` with the bearer token. Raises ReviewDashError on any failure."""
        blocked = await self.guard.check()
        if blocked is not None:
            raise ReviewDashError(blocked)

        try:
            response = await self._client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            log.warning("upstream_request_error", url=url, error=str(exc))
            raise ReviewDashError(Failure.upstream(fallback_message)) from exc

        if response.status_code == _QUOTA_STATUS:
            await self.guard.trip()
            retry_after = self.guard.cooldown_seconds
            message = (
                upstream_message(response)
                or f"Rate limit exceeded. Please wait {retry_after} seconds."
            )
            raise ReviewDashError(Failure.quota(message, retry_after))

        if not response.is_success:
            message = upstream_message(response) or fallback_message
            log.warning("upstream_error", url=url, status_code=response.status_code)
            raise ReviewDashError(Failure.upstream(message))

        return response
