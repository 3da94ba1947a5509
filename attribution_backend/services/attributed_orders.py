"""Order drill-down: which orders a channel / campaign / ad was credited with."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from attribution_backend.services.attribution_types import WeightedTouchpoint
from attribution_backend.utils.channels import is_ad_spend_channel


@dataclass(frozen=True)
class OrderFilter:
    channel: str
    campaign: Optional[str] = None
    ad_campaign_pk: Optional[int] = None
    ad_set_pk: Optional[int] = None
    ad_pk: Optional[int] = None
    first_time_customers_only: bool = False

    def matches(self, wt: WeightedTouchpoint) -> bool:
        tp = wt.event
        if tp.channel != self.channel:
            return False
        if self.first_time_customers_only and not tp.is_first_customer_order:
            return False
        if is_ad_spend_channel(self.channel):
            if self.ad_campaign_pk and tp.ad_campaign_pk != self.ad_campaign_pk:
                return False
            if self.ad_set_pk and tp.ad_set_pk != self.ad_set_pk:
                return False
            if self.ad_pk and tp.ad_pk != self.ad_pk:
                return False
        elif self.campaign is not None and tp.campaign != self.campaign:
            return False
        return True


@dataclass
class AttributedOrder:
    order_id: str
    attribution_weight: float
    total_price: float
    is_first_customer_order: bool
    first_event_timestamp: datetime

    @property
    def attributed_revenue(self) -> float:
        return self.attribution_weight * self.total_price

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "attribution_weight": self.attribution_weight,
            "total_price": self.total_price,
            "attributed_revenue": self.attributed_revenue,
            "is_first_customer_order": self.is_first_customer_order,
            "first_event_timestamp": self.first_event_timestamp.isoformat(),
        }


def collect_attributed_orders(weighted: Iterable[WeightedTouchpoint], order_filter: OrderFilter) -> list[AttributedOrder]:
    """One entry per credited order, attributed revenue descending (stable)."""
    orders: dict[str, AttributedOrder] = {}
    for wt in weighted:
        if not order_filter.matches(wt):
            continue
        tp = wt.event
        existing = orders.get(tp.order_id)
        if existing is None:
            orders[tp.order_id] = AttributedOrder(
                order_id=tp.order_id,
                attribution_weight=wt.weight,
                total_price=tp.total_price,
                is_first_customer_order=tp.is_first_customer_order,
                first_event_timestamp=tp.event_timestamp,
            )
            continue
        existing.attribution_weight += wt.weight
        if tp.event_timestamp < existing.first_event_timestamp:
            existing.first_event_timestamp = tp.event_timestamp
    return sorted(orders.values(), key=lambda o: o.attributed_revenue, reverse=True)


__all__ = ["OrderFilter", "AttributedOrder", "collect_attributed_orders"]
