"""Shared value types for the attribution pipeline.

Everything here lives only for the duration of one engine call: the stores
materialize `TouchpointEvent` / `SpendRecord` lists, the pipeline turns them
into `AttributedGroup` rows, and nothing is cached between requests.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Optional

from attribution_backend.models.db.enums import AggregationLevel


@dataclass(frozen=True)
class TouchpointEvent:
    """One marketing touchpoint of an order.

    Order money fields are duplicated on every touchpoint of the order; the
    position flags are computed over the order's whole lifetime, not the
    query window.
    """
    order_id: str
    channel: str
    event_timestamp: datetime
    campaign: str = ""
    ad_campaign_id: str = ""
    ad_set_id: str = ""
    ad_id: str = ""
    ad_campaign_pk: int = 0
    ad_set_pk: int = 0
    ad_pk: int = 0
    total_price: float = 0.0
    total_cogs: float = 0.0
    payment_fees: float = 0.0
    total_tax: float = 0.0
    is_first_event_overall: bool = False
    is_last_event_overall: bool = False
    is_last_paid_event_overall: bool = False
    has_any_paid_events: bool = False
    is_paid_channel: bool = False
    is_first_customer_order: bool = False

    @property
    def ad_hierarchy(self) -> tuple[int, int, int]:
        # (0, 0, 0) is the shared bucket for touchpoints without any ad
        return (self.ad_pk or 0, self.ad_set_pk or 0, self.ad_campaign_pk or 0)

    @property
    def has_ad_identifier(self) -> bool:
        return bool(self.ad_id)


@dataclass(frozen=True)
class SpendRecord:
    channel: str
    date_time: datetime
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: float = 0.0
    ad_campaign_id: str = ""
    ad_set_id: str = ""
    ad_id: str = ""
    ad_campaign_pk: int = 0
    ad_set_pk: int = 0
    ad_pk: int = 0

    @property
    def has_ad_identifier(self) -> bool:
        return bool(self.ad_id)


@dataclass(frozen=True)
class WeightedTouchpoint:
    event: TouchpointEvent
    weight: float


@dataclass(frozen=True)
class GroupKey:
    """Grouping identity for one output row.

    Equality uses the channel, the campaign string and the internal pks. The
    platform string ids are display-only and are resolved COALESCE-style when
    both sides of the spend join carry the same key.
    """
    channel: str
    campaign: Optional[str] = None
    ad_campaign_pk: int = 0
    ad_set_pk: int = 0
    ad_pk: int = 0
    ad_campaign_id: str = field(default="", compare=False)
    ad_set_id: str = field(default="", compare=False)
    ad_id: str = field(default="", compare=False)

    @classmethod
    def not_set(cls, channel: str) -> "GroupKey":
        return cls(channel=channel)

    @classmethod
    def for_touchpoint(cls, tp: TouchpointEvent, level: AggregationLevel) -> "GroupKey":
        if level is AggregationLevel.CHANNEL:
            return cls(channel=tp.channel)
        if level is AggregationLevel.CAMPAIGN:
            return cls(channel=tp.channel, campaign=tp.campaign or "")
        if not tp.has_ad_identifier:
            return cls.not_set(tp.channel)
        return cls(
            channel=tp.channel,
            ad_campaign_pk=tp.ad_campaign_pk or 0,
            ad_set_pk=tp.ad_set_pk or 0,
            ad_pk=tp.ad_pk or 0,
            ad_campaign_id=tp.ad_campaign_id or "",
            ad_set_id=tp.ad_set_id or "",
            ad_id=tp.ad_id or "",
        )

    @classmethod
    def for_spend(cls, rec: SpendRecord, level: AggregationLevel) -> "GroupKey":
        if level is AggregationLevel.CHANNEL:
            return cls(channel=rec.channel)
        if level is AggregationLevel.CAMPAIGN:
            # spend has no utm campaign concept; never joined at this level
            return cls(channel=rec.channel, campaign="")
        if not rec.has_ad_identifier:
            return cls.not_set(rec.channel)
        return cls(
            channel=rec.channel,
            ad_campaign_pk=rec.ad_campaign_pk or 0,
            ad_set_pk=rec.ad_set_pk or 0,
            ad_pk=rec.ad_pk or 0,
            ad_campaign_id=rec.ad_campaign_id or "",
            ad_set_id=rec.ad_set_id or "",
            ad_id=rec.ad_id or "",
        )

    def coalesce(self, other: Optional["GroupKey"]) -> "GroupKey":
        """Fill empty display ids from the other side of a join."""
        if other is None:
            return self
        return replace(
            self,
            ad_campaign_id=self.ad_campaign_id or other.ad_campaign_id,
            ad_set_id=self.ad_set_id or other.ad_set_id,
            ad_id=self.ad_id or other.ad_id,
        )

    def to_dict(self, level: AggregationLevel) -> dict[str, Any]:
        if level is AggregationLevel.CHANNEL:
            return {"channel": self.channel}
        if level is AggregationLevel.CAMPAIGN:
            return {"channel": self.channel, "campaign": self.campaign or ""}
        return {
            "channel": self.channel,
            "platform_ad_campaign_id": self.ad_campaign_id,
            "platform_ad_set_id": self.ad_set_id,
            "platform_ad_id": self.ad_id,
            "ad_campaign_pk": self.ad_campaign_pk,
            "ad_set_pk": self.ad_set_pk,
            "ad_pk": self.ad_pk,
        }


@dataclass
class MetricBundle:
    """Per-group output metrics.

    Optional fields are None when the level does not report them: campaign
    level has no spend concept at all, and cpc/ctr/impressions/clicks/
    conversions are ad level only.
    """
    attributed_orders: float = 0.0
    attributed_revenue: float = 0.0
    distinct_orders_touched: int = 0
    attributed_cogs: float = 0.0
    attributed_payment_fees: float = 0.0
    attributed_tax: float = 0.0
    net_profit: float = 0.0
    first_time_customer_orders: float = 0.0
    first_time_customer_revenue: float = 0.0
    ad_spend: Optional[float] = None
    impressions: Optional[int] = None
    clicks: Optional[int] = None
    conversions: Optional[float] = None
    roas: Optional[float] = None
    cpc: Optional[float] = None
    ctr: Optional[float] = None
    first_time_customer_roas: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class AttributedGroup:
    key: GroupKey
    metrics: MetricBundle

    def to_dict(self, level: AggregationLevel) -> dict[str, Any]:
        return {**self.key.to_dict(level), **self.metrics.to_dict()}


@dataclass(frozen=True)
class VatSettings:
    ignore_vat: bool = False


# ------------------------- Hierarchy side metadata ------------------------ #

@dataclass(frozen=True)
class HierarchyPks:
    campaign: list[int] = field(default_factory=list)
    ad_set: list[int] = field(default_factory=list)
    ad: list[int] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.campaign or self.ad_set or self.ad)


@dataclass(frozen=True)
class CampaignMetadata:
    id: int
    name: Optional[str] = None
    active: bool = False
    budget: Optional[float] = None
    platform_id: str = ""
    account_ref: Optional[str] = None


@dataclass(frozen=True)
class AdSetMetadata:
    id: int
    name: Optional[str] = None
    active: bool = False
    budget: Optional[float] = None
    platform_id: str = ""


@dataclass(frozen=True)
class AdMetadata:
    id: int
    name: Optional[str] = None
    active: bool = False
    image_url: Optional[str] = None
    platform_id: str = ""


@dataclass
class HierarchyMetadata:
    campaigns: dict[int, CampaignMetadata] = field(default_factory=dict)
    ad_sets: dict[int, AdSetMetadata] = field(default_factory=dict)
    ads: dict[int, AdMetadata] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "HierarchyMetadata":
        return cls()


__all__ = [
    "TouchpointEvent",
    "SpendRecord",
    "WeightedTouchpoint",
    "GroupKey",
    "MetricBundle",
    "AttributedGroup",
    "VatSettings",
    "HierarchyPks",
    "CampaignMetadata",
    "AdSetMetadata",
    "AdMetadata",
    "HierarchyMetadata",
]
