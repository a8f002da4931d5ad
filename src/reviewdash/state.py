"""Application state shared by every request handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from reviewdash.cache import Cache
    from reviewdash.config import Settings
    from reviewdash.lockout import LockoutGuard
    from reviewdash.resources import BusinessApi


@dataclass
class AppState:
    """Everything built once at startup and reused across requests."""

    settings: Settings
    cache: Cache
    guard: LockoutGuard
    http_client: httpx.AsyncClient
    api: BusinessApi
