"""Group weighted touchpoints (and spend rows) by GroupKey and sum metrics."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from attribution_backend.exceptions import ConfigurationError
from attribution_backend.models.db.enums import AggregationLevel
from attribution_backend.services.attribution_types import (
    GroupKey,
    SpendRecord,
    WeightedTouchpoint,
)


@dataclass
class AttributionTotals:
    key: GroupKey
    attributed_orders: float = 0.0
    attributed_revenue: float = 0.0
    attributed_cogs: float = 0.0
    attributed_payment_fees: float = 0.0
    attributed_tax: float = 0.0
    first_time_customer_orders: float = 0.0
    first_time_customer_revenue: float = 0.0
    order_ids: set[str] = field(default_factory=set)

    @property
    def distinct_orders_touched(self) -> int:
        # unweighted: an order counts once however its weight was split
        return len(self.order_ids)

    def add(self, wt: WeightedTouchpoint) -> None:
        tp, w = wt.event, wt.weight
        self.attributed_orders += w
        self.attributed_revenue += w * tp.total_price
        self.attributed_cogs += w * tp.total_cogs
        self.attributed_payment_fees += w * tp.payment_fees
        self.attributed_tax += w * tp.total_tax
        if tp.is_first_customer_order:
            self.first_time_customer_orders += w
            self.first_time_customer_revenue += w * tp.total_price
        self.order_ids.add(tp.order_id)


@dataclass
class SpendTotals:
    key: GroupKey
    ad_spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: float = 0.0

    def add(self, rec: SpendRecord) -> None:
        self.ad_spend += rec.spend or 0.0
        self.impressions += rec.impressions or 0
        self.clicks += rec.clicks or 0
        self.conversions += rec.conversions or 0.0


def require_channel(level: AggregationLevel, channel: Optional[str]) -> None:
    if level.requires_channel and not channel:
        raise ConfigurationError(f"Channel is required for {level.value}-level queries")


def _in_scope(row_channel: str, level: AggregationLevel, channel: Optional[str]) -> bool:
    if level is AggregationLevel.CHANNEL:
        return True
    return row_channel == channel


def aggregate_attribution(
    weighted: Iterable[WeightedTouchpoint],
    level: AggregationLevel,
    channel: Optional[str] = None,
) -> dict[GroupKey, AttributionTotals]:
    """Sum weighted touchpoints per group.

    Campaign and ad level keep only the requested channel. At ad level,
    touchpoints without an ad identifier are collapsed into the shared
    Not Set key instead of being dropped. Groups keep first-seen order.
    """
    require_channel(level, channel)
    groups: dict[GroupKey, AttributionTotals] = {}
    for wt in weighted:
        if not _in_scope(wt.event.channel, level, channel):
            continue
        key = GroupKey.for_touchpoint(wt.event, level)
        totals = groups.get(key)
        if totals is None:
            totals = groups[key] = AttributionTotals(key=key)
        else:
            totals.key = totals.key.coalesce(key)
        totals.add(wt)
    return groups


def aggregate_spend(
    records: Iterable[SpendRecord],
    level: AggregationLevel,
    channel: Optional[str] = None,
) -> dict[GroupKey, SpendTotals]:
    """Sum spend rows per group, mirroring aggregate_attribution's keys."""
    require_channel(level, channel)
    groups: dict[GroupKey, SpendTotals] = {}
    for rec in records:
        if not _in_scope(rec.channel, level, channel):
            continue
        key = GroupKey.for_spend(rec, level)
        totals = groups.get(key)
        if totals is None:
            totals = groups[key] = SpendTotals(key=key)
        else:
            totals.key = totals.key.coalesce(key)
        totals.add(rec)
    return groups


__all__ = [
    "AttributionTotals",
    "SpendTotals",
    "require_channel",
    "aggregate_attribution",
    "aggregate_spend",
]
