"""Quota-guarded, cached access to the business-listing reviews API."""

from __future__ import annotations

__version__ = "0.1.0"
