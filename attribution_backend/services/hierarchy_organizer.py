"""Reshape flat ad-level rows into Campaign -> Ad Set -> Ad trees.

Hierarchy components with a zero key become a synthetic "Not Set" node
(id 0, no platform id, never linked) rather than being dropped. Display
metadata comes from a side lookup; a missing row falls back to a generated
name such as "Campaign 123".

Parent metrics are always rebuilt from the children: additive metrics are
summed, `distinct_orders_touched` is the max over children (an order that
touched two ads of the same ad set must not be counted twice), and every
ratio is recomputed from the summed components.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from attribution_backend.config import HIERARCHY_SETTINGS
from attribution_backend.models.db.enums import AggregationLevel
from attribution_backend.services.attribution_types import (
    AttributedGroup,
    HierarchyMetadata,
    HierarchyPks,
    MetricBundle,
)
from attribution_backend.services.spend_joiner import derive_metrics

_SUMMED_FIELDS = (
    "attributed_orders",
    "attributed_revenue",
    "attributed_cogs",
    "attributed_payment_fees",
    "attributed_tax",
    "first_time_customer_orders",
    "first_time_customer_revenue",
    "ad_spend",
    "impressions",
    "clicks",
    "conversions",
)


@dataclass
class AdNode:
    id: int
    platform_ad_id: str
    name: str
    active: bool = False
    image_url: Optional[str] = None
    url: Optional[str] = None
    metrics: MetricBundle = field(default_factory=MetricBundle)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform_ad_id": self.platform_ad_id,
            "name": self.name,
            "active": self.active,
            "image_url": self.image_url,
            "url": self.url,
            **self.metrics.to_dict(),
        }


@dataclass
class AdSetNode:
    id: int
    platform_ad_set_id: str
    name: str
    active: bool = False
    budget: Optional[float] = None
    url: Optional[str] = None
    metrics: MetricBundle = field(default_factory=MetricBundle)
    ads: list[AdNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform_ad_set_id": self.platform_ad_set_id,
            "name": self.name,
            "active": self.active,
            "budget": self.budget,
            "url": self.url,
            **self.metrics.to_dict(),
            "ads": [ad.to_dict() for ad in self.ads],
        }


@dataclass
class CampaignNode:
    id: int
    platform_ad_campaign_id: str
    name: str
    active: bool = False
    budget: Optional[float] = None
    account_ref: Optional[str] = None
    url: Optional[str] = None
    metrics: MetricBundle = field(default_factory=MetricBundle)
    ad_sets: list[AdSetNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform_ad_campaign_id": self.platform_ad_campaign_id,
            "name": self.name,
            "active": self.active,
            "budget": self.budget,
            "url": self.url,
            **self.metrics.to_dict(),
            "ad_sets": [ad_set.to_dict() for ad_set in self.ad_sets],
        }


def collect_pks(groups: Iterable[AttributedGroup]) -> HierarchyPks:
    """Non-zero pks per entity type, first-seen order, for the metadata lookup."""
    campaigns: dict[int, None] = {}
    ad_sets: dict[int, None] = {}
    ads: dict[int, None] = {}
    for group in groups:
        if group.key.ad_campaign_pk > 0:
            campaigns[group.key.ad_campaign_pk] = None
        if group.key.ad_set_pk > 0:
            ad_sets[group.key.ad_set_pk] = None
        if group.key.ad_pk > 0:
            ads[group.key.ad_pk] = None
    return HierarchyPks(campaign=list(campaigns), ad_set=list(ad_sets), ad=list(ads))


def rollup_metrics(children: Iterable[MetricBundle], ignore_vat: bool) -> MetricBundle:
    """Parent bundle from child bundles (sum / max / recompute)."""
    parent = MetricBundle(ad_spend=0.0, impressions=0, clicks=0, conversions=0.0)
    for child in children:
        for name in _SUMMED_FIELDS:
            setattr(parent, name, getattr(parent, name) + (getattr(child, name) or 0))
        parent.distinct_orders_touched = max(parent.distinct_orders_touched, child.distinct_orders_touched)
    return derive_metrics(parent, AggregationLevel.AD, ignore_vat)


def _not_set() -> str:
    return HIERARCHY_SETTINGS["not_set_label"]


def _campaign_node(pk: int, platform_id: str, metadata: HierarchyMetadata) -> CampaignNode:
    if pk == 0:
        return CampaignNode(id=0, platform_ad_campaign_id="", name=_not_set())
    meta = metadata.campaigns.get(pk)
    platform_id = platform_id or (meta.platform_id if meta else "")
    name = (meta.name if meta else None) or HIERARCHY_SETTINGS["campaign_fallback_name"].format(platform_id=platform_id)
    return CampaignNode(
        id=pk,
        platform_ad_campaign_id=platform_id,
        name=name,
        active=bool(meta.active) if meta else False,
        budget=meta.budget if meta else None,
        account_ref=meta.account_ref if meta else None,
    )


def _ad_set_node(pk: int, platform_id: str, metadata: HierarchyMetadata) -> AdSetNode:
    if pk == 0:
        return AdSetNode(id=0, platform_ad_set_id="", name=_not_set())
    meta = metadata.ad_sets.get(pk)
    platform_id = platform_id or (meta.platform_id if meta else "")
    name = (meta.name if meta else None) or HIERARCHY_SETTINGS["ad_set_fallback_name"].format(platform_id=platform_id)
    return AdSetNode(
        id=pk,
        platform_ad_set_id=platform_id,
        name=name,
        active=bool(meta.active) if meta else False,
        budget=meta.budget if meta else None,
    )


def _ad_node(pk: int, platform_id: str, metadata: HierarchyMetadata, metrics: MetricBundle) -> AdNode:
    if pk == 0:
        return AdNode(id=0, platform_ad_id="", name=_not_set(), metrics=metrics)
    meta = metadata.ads.get(pk)
    platform_id = platform_id or (meta.platform_id if meta else "")
    name = (meta.name if meta else None) or HIERARCHY_SETTINGS["ad_fallback_name"].format(platform_id=platform_id)
    return AdNode(
        id=pk,
        platform_ad_id=platform_id,
        name=name,
        active=bool(meta.active) if meta else False,
        image_url=meta.image_url if meta else None,
        metrics=metrics,
    )


def _by_revenue(nodes: list) -> list:
    return sorted(nodes, key=lambda n: n.metrics.attributed_revenue, reverse=True)


def organize_hierarchy(
    groups: Iterable[AttributedGroup],
    metadata: HierarchyMetadata,
    *,
    ignore_vat: bool,
) -> list[CampaignNode]:
    """Build the campaign tree from joined ad-level groups.

    Every level is sorted by attributed revenue descending (stable).
    """
    campaigns: dict[int, CampaignNode] = {}
    ad_sets: dict[tuple[int, int], AdSetNode] = {}

    for group in groups:
        key = group.key
        campaign = campaigns.get(key.ad_campaign_pk)
        if campaign is None:
            campaign = campaigns[key.ad_campaign_pk] = _campaign_node(key.ad_campaign_pk, key.ad_campaign_id, metadata)

        # ad set identity is per campaign
        set_key = (key.ad_campaign_pk, key.ad_set_pk)
        ad_set = ad_sets.get(set_key)
        if ad_set is None:
            ad_set = ad_sets[set_key] = _ad_set_node(key.ad_set_pk, key.ad_set_id, metadata)
            campaign.ad_sets.append(ad_set)

        ad_set.ads.append(_ad_node(key.ad_pk, key.ad_id, metadata, group.metrics))

    for ad_set in ad_sets.values():
        ad_set.ads = _by_revenue(ad_set.ads)
        ad_set.metrics = rollup_metrics((ad.metrics for ad in ad_set.ads), ignore_vat)

    for campaign in campaigns.values():
        campaign.ad_sets = _by_revenue(campaign.ad_sets)
        campaign.metrics = rollup_metrics((s.metrics for s in campaign.ad_sets), ignore_vat)

    return _by_revenue(list(campaigns.values()))


def tree_counts(tree: list[CampaignNode]) -> dict[str, int]:
    return {
        "total_campaigns": len(tree),
        "total_ad_sets": sum(len(c.ad_sets) for c in tree),
        "total_ads": sum(len(s.ads) for c in tree for s in c.ad_sets),
    }


__all__ = [
    "AdNode",
    "AdSetNode",
    "CampaignNode",
    "collect_pks",
    "rollup_metrics",
    "organize_hierarchy",
    "tree_counts",
]
