"""Accounts, locations and reviews: cache first, guarded fetch on miss.

A cache hit is served without consulting the lockout guard, so warm data stays
available during a cool-down. Failures from the guarded fetch propagate
unchanged and nothing is cached for them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from reviewdash import keys
from reviewdash.config import UpstreamSettings
from reviewdash.errors import Failure, ReviewDashError

if TYPE_CHECKING:
    from reviewdash.cache import Cache
    from reviewdash.fetcher import GuardedFetcher


class BusinessApi:
    """Read operations against the business-listing upstream."""

    def __init__(
        self,
        cache: Cache,
        fetcher: GuardedFetcher,
        settings: UpstreamSettings | None = None,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._settings = settings or UpstreamSettings()

    async def fetch_accounts(self, access_token: str) -> Any:
        url = f"{self._settings.account_management_url}/v1/accounts"
        return await self._cached_fetch(
            keys.accounts_key(), url, access_token, None, "Failed to fetch accounts"
        )

    async def fetch_locations(self, access_token: str, account_id: str) -> Any:
        url = f"{self._settings.business_information_url}/v1/{account_id}/locations"
        params = {"readMask": self._settings.locations_read_mask}
        return await self._cached_fetch(
            keys.locations_key(account_id), url, access_token, params, "Failed to fetch locations"
        )

    async def fetch_reviews(
        self,
        access_token: str,
        account_id: str,
        location_id: str,
        page_token: str | None = None,
    ) -> Any:
        """One page of reviews. ``page_token=None`` (or empty) is the first page."""
        page_token = page_token or None
        url = f"{self._settings.reviews_url}/v4/{account_id}/{location_id}/reviews"
        params: dict[str, Any] = {"pageSize": self._settings.reviews_page_size}
        if page_token:
            params["pageToken"] = page_token
        return await self._cached_fetch(
            keys.reviews_key(account_id, location_id, page_token),
            url,
            access_token,
            params,
            "Failed to fetch reviews",
        )

    async def _cached_fetch(
        self,
        key: str,
        url: str,
        access_token: str,
        params: dict[str, Any] | None,
        fallback_message: str,
    ) -> Any:
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        response = await self._fetcher.fetch(url, access_token, params, fallback_message)
        try:
            data = response.json()
        except ValueError as exc:
            raise ReviewDashError(Failure.upstream(fallback_message)) from exc

        await self._cache.set(key, data)
        return data
