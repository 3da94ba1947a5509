"""Ad manager deep links for an organized campaign tree.

Presentation only: the engine never produces URLs, the analytics service
decorates the tree after the engine returns. Not Set nodes (id 0) and
platforms without a template get no URL.
"""
from __future__ import annotations

from typing import Optional

from attribution_backend.config import AD_MANAGER_URLS
from attribution_backend.services.hierarchy_organizer import CampaignNode


def generate_ad_manager_url(
    channel: str,
    entity_type: str,
    platform_id: str,
    ad_account_id: Optional[str] = None,
) -> Optional[str]:
    templates = AD_MANAGER_URLS.get(channel.lower())
    if not templates or not platform_id:
        return None
    template = templates.get(entity_type)
    if template is None:
        return None
    if "{account_id}" in template:
        account_id = (ad_account_id or "").replace("act_", "")
        if not account_id:
            return None
        return template.format(account_id=account_id, platform_id=platform_id)
    return template.format(platform_id=platform_id)


def attach_ad_manager_urls(tree: list[CampaignNode], channel: str) -> list[CampaignNode]:
    """Fill ``url`` on every non Not Set node of the tree, in place."""
    for campaign in tree:
        account = campaign.account_ref
        if campaign.id:
            campaign.url = generate_ad_manager_url(channel, "campaign", campaign.platform_ad_campaign_id, account)
        for ad_set in campaign.ad_sets:
            if ad_set.id:
                ad_set.url = generate_ad_manager_url(channel, "ad_set", ad_set.platform_ad_set_id, account)
            for ad in ad_set.ads:
                if ad.id:
                    ad.url = generate_ad_manager_url(channel, "ad", ad.platform_ad_id, account)
    return tree


__all__ = ["generate_ad_manager_url", "attach_ad_manager_urls"]
