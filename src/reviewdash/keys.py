"""Cache key derivation.

Keys are ``<kind>_<digest>`` where the digest is the SHA-256 of the JSON
encoding of ``[kind, *params]``. Every parameter that changes the upstream
response must be passed in. ``None`` encodes as JSON ``null``, so the first
page of a listing never shares a key with a page whose cursor happens to be
the string ``"first"``.
"""

from __future__ import annotations

import hashlib
import json

from reviewdash.models.retry import ResourceKind

_DIGEST_CHARS = 32


def cache_key(kind: str, *params: str | None) -> str:
    canonical = json.dumps([kind, *params], separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:_DIGEST_CHARS]
    return f"{kind}_{digest}"


def accounts_key() -> str:
    return cache_key(ResourceKind.ACCOUNTS.value)


def locations_key(account_id: str) -> str:
    return cache_key(ResourceKind.LOCATIONS.value, account_id)


def reviews_key(account_id: str, location_id: str, page_token: str | None = None) -> str:
    return cache_key(ResourceKind.REVIEWS.value, account_id, location_id, page_token)
