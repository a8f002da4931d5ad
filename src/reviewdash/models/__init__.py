from __future__ import annotations

from reviewdash.models.cache import CacheEntry, LockoutState
from reviewdash.models.retry import PendingRetry, ResourceKind, RetryAction

__all__ = [
    # cache
    "CacheEntry",
    "LockoutState",
    # retry
    "ResourceKind",
    "RetryAction",
    "PendingRetry",
]
