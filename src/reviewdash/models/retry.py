from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from reviewdash.errors import Failure


class ResourceKind(StrEnum):
    ACCOUNTS = "accounts"
    LOCATIONS = "locations"
    REVIEWS = "reviews"


class RetryAction(BaseModel):
    """Serializable description of a dashboard load to repeat."""

    model_config = ConfigDict(frozen=True)

    resource: ResourceKind
    account_id: str | None = None
    location_id: str | None = None
    page_token: str | None = None


class PendingRetry(BaseModel):
    action: RetryAction
    failure: Failure
    remaining_seconds: int
