"""Channel classification helpers (ad spend vs. non ad spend)."""
from __future__ import annotations

from attribution_backend.config import AD_SPEND_CHANNELS, MANAGED_AD_CHANNELS


def is_ad_spend_channel(channel: str) -> bool:
    return channel.lower() in AD_SPEND_CHANNELS


def is_non_ad_spend_channel(channel: str) -> bool:
    return not is_ad_spend_channel(channel)


def is_managed_ad_channel(channel: str) -> bool:
    """Channels we can edit budgets / statuses for through platform APIs."""
    return channel.lower() in MANAGED_AD_CHANNELS


__all__ = ["is_ad_spend_channel", "is_non_ad_spend_channel", "is_managed_ad_channel"]
