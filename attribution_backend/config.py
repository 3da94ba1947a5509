"""Core application configuration & tunable analytics rules.

Business rules that may evolve (which channels carry ad spend, default
attribution model, date range limits, hierarchy placeholder naming, ad
manager deep links) are centralized here so they can be adjusted without
diving into service logic. Values are module constants; tests monkeypatch
the dicts where needed.
"""
from __future__ import annotations

import os

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE") or None
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# -------------------------------- Channels -------------------------------- #
# Paid advertising channels. Everything else (organic, direct, email, ...) is
# a non ad spend channel and is reported at campaign level.
AD_SPEND_CHANNELS: tuple[str, ...] = ("meta-ads", "google-ads", "taboola", "tiktok-ads")

# Ad spend channels we manage through platform APIs (budget / status edits)
MANAGED_AD_CHANNELS: tuple[str, ...] = ("meta-ads", "google-ads")

# -------------------------------- Analytics ------------------------------- #
ANALYTICS_SETTINGS: dict[str, str | int | float] = {
    "default_attribution_model": os.getenv("DEFAULT_ATTRIBUTION_MODEL", "last_paid_click"),
    # Upper bound for a single request window (inclusive days)
    "max_date_range_days": int(os.getenv("MAX_DATE_RANGE_DAYS", "366")),
    # Linear weights of one order must sum to 1 within this tolerance
    "weight_tolerance": 1e-9,
}

# -------------------------------- Hierarchy ------------------------------- #
HIERARCHY_SETTINGS: dict[str, str] = {
    "not_set_label": "Not Set",
    "campaign_fallback_name": "Campaign {platform_id}",
    "ad_set_fallback_name": "Ad Set {platform_id}",
    "ad_fallback_name": "Ad {platform_id}",
}

# ---------------------------- Ad manager links ---------------------------- #
# Keyed by channel, then entity type. Meta links need the ad account id.
AD_MANAGER_URLS: dict[str, dict[str, str]] = {
    "meta-ads": {
        "campaign": (
            "https://www.facebook.com/adsmanager/manage/campaigns?act={account_id}"
            "&filter_set=SEARCH_BY_CAMPAIGN_GROUP_ID-STRING%1EEQUAL%1E%22{platform_id}%22"
            "&selected_campaign_ids={platform_id}"
        ),
        "ad_set": (
            "https://www.facebook.com/adsmanager/manage/adsets?act={account_id}"
            "&filter_set=SEARCH_BY_CAMPAIGN_ID-STRING%1EEQUAL%1E%22{platform_id}%22"
            "&selected_adset_ids={platform_id}"
        ),
        "ad": (
            "https://www.facebook.com/adsmanager/manage/ads?act={account_id}"
            "&filter_set=SEARCH_BY_ADGROUP_IDS-STRING_SET%1EANY%1E%5B%22{platform_id}%22%5D"
            "&selected_ad_ids={platform_id}"
        ),
    },
    "google-ads": {
        "campaign": "https://ads.google.com/aw/campaigns?campaignId={platform_id}",
    },
    "taboola": {
        "campaign": "https://ads.taboola.com/campaigns?campaignId={platform_id}",
    },
}

__all__ = [
    "LOG_LEVEL",
    "LOG_FILE",
    "CORS_ORIGINS",
    "AD_SPEND_CHANNELS",
    "MANAGED_AD_CHANNELS",
    "ANALYTICS_SETTINGS",
    "HIERARCHY_SETTINGS",
    "AD_MANAGER_URLS",
]
