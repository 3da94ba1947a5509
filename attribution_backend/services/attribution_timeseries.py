"""Hourly / daily buckets of attributed revenue against ad spend."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Iterable, Optional

from attribution_backend.exceptions import ConfigurationError
from attribution_backend.models.db.enums import TimeGranularity, TimeseriesFilterType
from attribution_backend.services.attribution_types import SpendRecord, WeightedTouchpoint
from attribution_backend.utils.metrics import guarded_ratio


@dataclass(frozen=True)
class TimeseriesFilter:
    type: TimeseriesFilterType = TimeseriesFilterType.ALL_CHANNELS
    channel: Optional[str] = None
    ad_campaign_pk: Optional[int] = None
    ad_set_pk: Optional[int] = None
    ad_pk: Optional[int] = None

    def validate(self) -> None:
        if self.type is not TimeseriesFilterType.ALL_CHANNELS and not self.channel:
            raise ConfigurationError(f"Channel is required for '{self.type.value}' timeseries filter")

    def _matches(self, channel: str, campaign_pk: int, set_pk: int, ad_pk: int) -> bool:
        if self.type is TimeseriesFilterType.ALL_CHANNELS:
            return True
        if channel != self.channel:
            return False
        if self.type is TimeseriesFilterType.AD_HIERARCHY:
            # unset / zero pks do not narrow
            if self.ad_campaign_pk and campaign_pk != self.ad_campaign_pk:
                return False
            if self.ad_set_pk and set_pk != self.ad_set_pk:
                return False
            if self.ad_pk and ad_pk != self.ad_pk:
                return False
        return True

    def matches_touchpoint(self, wt: WeightedTouchpoint) -> bool:
        tp = wt.event
        return self._matches(tp.channel, tp.ad_campaign_pk, tp.ad_set_pk, tp.ad_pk)

    def matches_spend(self, rec: SpendRecord) -> bool:
        return self._matches(rec.channel, rec.ad_campaign_pk, rec.ad_set_pk, rec.ad_pk)

    def to_dict(self) -> dict:
        data: dict = {"type": self.type.value}
        for name in ("channel", "ad_campaign_pk", "ad_set_pk", "ad_pk"):
            value = getattr(self, name)
            if value:
                data[name] = value
        return data


@dataclass
class TimeseriesPoint:
    time_period: datetime
    total_ad_spend: float = 0.0
    total_attributed_revenue: float = 0.0
    roas: float = 0.0

    def to_dict(self, granularity: TimeGranularity) -> dict:
        fmt = "%Y-%m-%d %H:00:00" if granularity is TimeGranularity.HOURLY else "%Y-%m-%d"
        return {
            "time_period": self.time_period.strftime(fmt),
            "total_ad_spend": self.total_ad_spend,
            "total_attributed_revenue": self.total_attributed_revenue,
            "roas": self.roas,
        }


def bucket_start(ts: datetime, granularity: TimeGranularity) -> datetime:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    if granularity is TimeGranularity.HOURLY:
        return ts.replace(minute=0, second=0, microsecond=0)
    return datetime.combine(ts.date(), time.min)


def build_timeseries(
    weighted: Iterable[WeightedTouchpoint],
    spend: Iterable[SpendRecord],
    granularity: TimeGranularity,
    ts_filter: TimeseriesFilter,
) -> list[TimeseriesPoint]:
    """Outer-merge revenue and spend per period, ascending by period."""
    points: dict[datetime, TimeseriesPoint] = {}

    def point_for(ts: datetime) -> TimeseriesPoint:
        period = bucket_start(ts, granularity)
        point = points.get(period)
        if point is None:
            point = points[period] = TimeseriesPoint(time_period=period)
        return point

    for wt in weighted:
        if ts_filter.matches_touchpoint(wt):
            point_for(wt.event.event_timestamp).total_attributed_revenue += wt.weight * wt.event.total_price
    for rec in spend:
        if ts_filter.matches_spend(rec):
            point_for(rec.date_time).total_ad_spend += rec.spend or 0.0

    ordered = [points[p] for p in sorted(points)]
    for point in ordered:
        point.roas = guarded_ratio(point.total_attributed_revenue, point.total_ad_spend)
    return ordered


__all__ = ["TimeseriesFilter", "TimeseriesPoint", "bucket_start", "build_timeseries"]
