from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """Cached upstream payload for a single cache key."""

    key: str
    data: Any  # Parsed upstream JSON, returned verbatim on a hit
    fetched_at: datetime
    expires_at: datetime


class LockoutState(BaseModel):
    """Active cool-down for one upstream identity."""

    upstream: str
    expires_at: datetime
    set_at: datetime  # Diagnostic only
