"""Shared fixtures: a controllable clock and sample upstream payloads."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def accounts_payload() -> dict[str, Any]:
    return {
        "accounts": [
            {"name": "accounts/111", "accountName": "Siam Coffee", "type": "PERSONAL"},
        ]
    }


@pytest.fixture()
def locations_payload() -> dict[str, Any]:
    return {
        "locations": [
            {
                "name": "locations/222",
                "title": "Siam Coffee Sukhumvit",
                "websiteUri": "https://siamcoffee.example",
            }
        ]
    }


@pytest.fixture()
def reviews_payload() -> dict[str, Any]:
    return {
        "reviews": [
            {
                "reviewId": "r1",
                "reviewer": {"displayName": "Nok"},
                "starRating": "FIVE",
                "comment": "Great flat white",
                "createTime": "2026-02-01T10:00:00Z",
                "updateTime": "2026-02-01T10:00:00Z",
            }
        ],
        "averageRating": 4.6,
        "totalReviewCount": 128,
        "nextPageToken": "page-2",
    }
