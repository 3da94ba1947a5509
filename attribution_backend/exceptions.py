"""Error taxonomy for the attribution engine.

Configuration errors are caller mistakes (bad model, missing channel, bad
date range) and surface as 4xx responses. Upstream data failures are NOT
wrapped here: whatever the touchpoint / spend stores raise propagates to the
caller unmodified.
"""
from __future__ import annotations


class AttributionError(Exception):
    """Base class for attribution engine errors."""


class ConfigurationError(AttributionError, ValueError):
    """Invalid request configuration (unknown model/level, missing channel)."""


class InvalidDateRangeError(ConfigurationError):
    """Start date after end date, malformed date, or range above the limit."""


class ShopNotFoundError(AttributionError, LookupError):
    """No shop is registered for the requested account."""

    def __init__(self, account_id: str):
        super().__init__(f"No shop found for account {account_id}")
        self.account_id = account_id


__all__ = [
    "AttributionError",
    "ConfigurationError",
    "InvalidDateRangeError",
    "ShopNotFoundError",
]
