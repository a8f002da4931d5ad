"""Dashboard-side client for the reviewdash HTTP routes.

Each load either returns the JSON payload or reports a ``Failure`` to the
client's ``RetryOrchestrator`` and returns ``None``. Quota failures come with
the ``RetryAction`` that reproduces the load, so the orchestrator can replay
it with the same account, location and page token.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from reviewdash.errors import ErrorKind, Failure
from reviewdash.models.retry import ResourceKind, RetryAction
from reviewdash.retry import RetryOrchestrator, Sleep

_FALLBACK_MESSAGES = {
    ResourceKind.ACCOUNTS: "Failed to fetch accounts",
    ResourceKind.LOCATIONS: "Failed to fetch locations",
    ResourceKind.REVIEWS: "Failed to fetch reviews",
}


def _request_for(action: RetryAction) -> tuple[str, dict[str, str]]:
    params: dict[str, str] = {}
    if action.account_id is not None:
        params["accountId"] = action.account_id
    if action.location_id is not None:
        params["locationId"] = action.location_id
    if action.page_token:
        params["pageToken"] = action.page_token
    return f"/api/{action.resource.value}", params


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class DashboardClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        floor_seconds: int = 60,
        default_retry_after: int = 60,
        tick_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._http = http
        self._default_retry_after = default_retry_after
        self._result_listeners: list[Callable[[RetryAction, Any], None]] = []
        self.retry = RetryOrchestrator(
            self.run, floor_seconds=floor_seconds, tick_seconds=tick_seconds, sleep=sleep
        )

    def on_result(self, listener: Callable[[RetryAction, Any], None]) -> None:
        """Call ``listener(action, payload)`` after every successful load, replays included."""
        self._result_listeners.append(listener)

    async def load_accounts(self) -> Any:
        return await self.run(RetryAction(resource=ResourceKind.ACCOUNTS))

    async def load_locations(self, account_id: str) -> Any:
        return await self.run(RetryAction(resource=ResourceKind.LOCATIONS, account_id=account_id))

    async def load_reviews(
        self, account_id: str, location_id: str, page_token: str | None = None
    ) -> Any:
        return await self.run(
            RetryAction(
                resource=ResourceKind.REVIEWS,
                account_id=account_id,
                location_id=location_id,
                page_token=page_token,
            )
        )

    async def run(self, action: RetryAction) -> Any:
        """Perform ``action`` against the routes; failures go to ``self.retry``."""
        self.retry.clear_error()
        fallback = _FALLBACK_MESSAGES[action.resource]
        path, params = _request_for(action)

        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError:
            self.retry.report(Failure.upstream(fallback), action)
            return None

        body = _json_body(response)
        if response.status_code == 429:
            retry_after = body.get("retryAfter")
            if not isinstance(retry_after, int) or retry_after <= 0:
                retry_after = self._default_retry_after
            failure = Failure.quota(str(body.get("error") or fallback), retry_after)
            self.retry.report(failure, action)
            return None

        if not response.is_success:
            try:
                kind = ErrorKind(body.get("kind"))
            except ValueError:
                kind = ErrorKind.UPSTREAM_ERROR
            self.retry.report(Failure(kind=kind, message=str(body.get("error") or fallback)))
            return None

        for listener in self._result_listeners:
            listener(action, body)
        return body
