"""Central Enum definitions for attribution requests.

These replace scattered string literals so the API schemas, repositories
and the engine agree on the closed set of models and levels.
"""
from __future__ import annotations
import enum


class AttributionModel(str, enum.Enum):
    FIRST_CLICK = "first_click"
    LAST_CLICK = "last_click"
    LAST_PAID_CLICK = "last_paid_click"
    LINEAR_ALL = "linear_all"
    LINEAR_PAID = "linear_paid"

    @property
    def is_linear(self) -> bool:
        return self in (AttributionModel.LINEAR_ALL, AttributionModel.LINEAR_PAID)


class AggregationLevel(str, enum.Enum):
    CHANNEL = "channel"
    CAMPAIGN = "campaign"  # non ad spend channels, grouped by campaign string
    AD = "ad"              # ad spend channels, grouped by ad hierarchy

    @property
    def requires_channel(self) -> bool:
        return self is not AggregationLevel.CHANNEL


class TimeseriesFilterType(str, enum.Enum):
    ALL_CHANNELS = "all_channels"
    CHANNEL = "channel"
    AD_HIERARCHY = "ad_hierarchy"


class TimeGranularity(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"


__all__ = [
    "AttributionModel",
    "AggregationLevel",
    "TimeseriesFilterType",
    "TimeGranularity",
]
