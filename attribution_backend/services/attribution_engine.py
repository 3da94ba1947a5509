"""Attribution engine facade.

`AttributionEngine.compute(model, level, shop, start_date, end_date, channel)`:
1. Validates the request (model, level, channel requirement, date range).
2. Loads the touchpoint window, the spend window and the shop VAT setting.
3. Selects / weights touchpoints (attribution_selector).
4. Groups by the level's key (aggregator) and full-outer-joins spend
   (spend_joiner), sorted by attributed revenue descending.
5. Ad level only: looks up hierarchy metadata and organizes the tree
   (hierarchy_organizer). Metadata failures degrade to fallback names.

Touchpoint / spend / VAT fetch errors are propagated untouched: financial
aggregates are never computed from partial inputs. The engine keeps no state
between calls.
"""
from __future__ import annotations

import time
from datetime import date
from typing import Optional, Protocol, Sequence, Union

from attribution_backend.exceptions import ConfigurationError
from attribution_backend.models.db.enums import AggregationLevel, AttributionModel, TimeGranularity
from attribution_backend.services.aggregator import aggregate_attribution, aggregate_spend, require_channel
from attribution_backend.services.attributed_orders import AttributedOrder, OrderFilter, collect_attributed_orders
from attribution_backend.services.attribution_selector import coerce_model, select_touchpoints
from attribution_backend.services.attribution_timeseries import (
    TimeseriesFilter,
    TimeseriesPoint,
    build_timeseries,
)
from attribution_backend.services.attribution_types import (
    AttributedGroup,
    HierarchyMetadata,
    HierarchyPks,
    SpendRecord,
    TouchpointEvent,
    VatSettings,
    WeightedTouchpoint,
)
from attribution_backend.services.hierarchy_organizer import CampaignNode, collect_pks, organize_hierarchy
from attribution_backend.services.spend_joiner import join_with_spend
from attribution_backend.utils import get_logger, log_performance
from attribution_backend.utils.time import (
    in_window,
    make_end_date_exclusive,
    parse_date,
    should_use_hourly_aggregation,
    validate_date_range,
    window_bounds,
)

logger = get_logger(__name__)

# ------------------------------ Collaborators ----------------------------- #
# Dates passed to the stores are a half-open window: start_date inclusive,
# end_date_exclusive = caller end date + 1 day.

class TouchpointStore(Protocol):
    def fetch_touchpoints(
        self, shop: str, start_date: date, end_date_exclusive: date, channel: Optional[str] = None
    ) -> Sequence[TouchpointEvent]: ...

class SpendStore(Protocol):
    def fetch_spend(
        self, shop: str, start_date: date, end_date_exclusive: date, channel: Optional[str] = None
    ) -> Sequence[SpendRecord]: ...

class ShopSettingsStore(Protocol):
    def fetch_shop_vat_setting(self, shop: str) -> VatSettings: ...

class HierarchyMetadataStore(Protocol):
    def fetch_hierarchy_metadata(self, pks: HierarchyPks) -> HierarchyMetadata: ...

EngineResult = Union[list[AttributedGroup], list[CampaignNode]]

def coerce_level(level: AggregationLevel | str) -> AggregationLevel:
    if isinstance(level, AggregationLevel):
        return level
    try:
        return AggregationLevel(level)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown aggregation level: {level}") from exc

class AttributionEngine:
    """Stateless orchestrator over the four collaborator stores."""

    def __init__(
        self,
        touchpoints: TouchpointStore,
        spend: SpendStore,
        shops: ShopSettingsStore,
        hierarchy: HierarchyMetadataStore,
    ):
        self.touchpoints = touchpoints
        self.spend = spend
        self.shops = shops
        self.hierarchy = hierarchy

    # ------------------------------------------------------------------ #
    def _window(self, start_date: str | date, end_date: str | date) -> tuple[date, date]:
        start, end = parse_date(start_date), parse_date(end_date)
        validate_date_range(start, end)
        return start, end

    def _load_touchpoints(
        self,
        shop: str,
        start: date,
        end: date,
        model: AttributionModel,
        channel: Optional[str],
    ) -> list[TouchpointEvent]:
        # linear divisors are computed over each order's full window set, so
        # the channel filter is applied after weighting for those models
        fetch_channel = None if model.is_linear else channel
        window_start, window_end = window_bounds(start, end)
        rows = self.touchpoints.fetch_touchpoints(shop, start, make_end_date_exclusive(end), fetch_channel)
        return [tp for tp in rows if in_window(tp.event_timestamp, window_start, window_end)]

    def _load_spend(self, shop: str, start: date, end: date, channel: Optional[str]) -> list[SpendRecord]:
        window_start, window_end = window_bounds(start, end)
        rows = self.spend.fetch_spend(shop, start, make_end_date_exclusive(end), channel)
        return [rec for rec in rows if in_window(rec.date_time, window_start, window_end)]

    def _weighted_window(
        self, model: AttributionModel, shop: str, start: date, end: date, channel: Optional[str]
    ) -> list[WeightedTouchpoint]:
        touchpoints = self._load_touchpoints(shop, start, end, model, channel)
        return select_touchpoints(model, touchpoints)

    def _fetch_metadata(self, pks: HierarchyPks) -> HierarchyMetadata:
        if pks.is_empty():
            return HierarchyMetadata.empty()
        try:
            return self.hierarchy.fetch_hierarchy_metadata(pks)
        except Exception as e:  # display metadata only
            logger.error(
                "Hierarchy metadata lookup failed, using fallback names",
                campaigns=len(pks.campaign),
                ad_sets=len(pks.ad_set),
                ads=len(pks.ad),
                error=str(e),
            )
            return HierarchyMetadata.empty()

    # ------------------------------------------------------------------ #
    def compute(
        self,
        model: AttributionModel | str,
        level: AggregationLevel | str,
        shop: str,
        start_date: str | date,
        end_date: str | date,
        channel: Optional[str] = None,
    ) -> EngineResult:
        """Attribute orders in [start_date, end_date] (both inclusive days).

        Returns flat groups for channel / campaign level and a campaign tree
        for ad level.

        Raises:
            ConfigurationError: unknown model or level, missing channel,
                invalid date range
        """
        started = time.time()
        resolved_model = coerce_model(model)
        resolved_level = coerce_level(level)
        require_channel(resolved_level, channel)
        start, end = self._window(start_date, end_date)
        scoped_channel = channel if resolved_level.requires_channel else None

        weighted = self._weighted_window(resolved_model, shop, start, end, scoped_channel)
        vat = self.shops.fetch_shop_vat_setting(shop)

        attribution = aggregate_attribution(weighted, resolved_level, scoped_channel)
        if resolved_level is AggregationLevel.CAMPAIGN:
            spend_totals = {}
        else:
            spend_totals = aggregate_spend(
                self._load_spend(shop, start, end, scoped_channel), resolved_level, scoped_channel
            )
        groups = join_with_spend(attribution, spend_totals, resolved_level, vat)

        result: EngineResult = groups
        if resolved_level is AggregationLevel.AD:
            metadata = self._fetch_metadata(collect_pks(groups))
            result = organize_hierarchy(groups, metadata, ignore_vat=vat.ignore_vat)

        log_performance(
            operation="attribution_engine.compute",
            duration_ms=(time.time() - started) * 1000,
            additional_data={
                "shop": shop,
                "model": resolved_model.value,
                "aggregation_level": resolved_level.value,
                "channel": scoped_channel,
                "touchpoints_credited": len(weighted),
                "groups": len(groups),
            },
        )
        return result

    def compute_timeseries(
        self,
        model: AttributionModel | str,
        shop: str,
        start_date: str | date,
        end_date: str | date,
        ts_filter: Optional[TimeseriesFilter] = None,
    ) -> tuple[TimeGranularity, list[TimeseriesPoint]]:
        """Revenue vs. spend per hour (single-day range) or per day."""
        resolved_model = coerce_model(model)
        ts_filter = ts_filter or TimeseriesFilter()
        ts_filter.validate()
        start, end = self._window(start_date, end_date)
        granularity = TimeGranularity.HOURLY if should_use_hourly_aggregation(start, end) else TimeGranularity.DAILY

        weighted = self._weighted_window(resolved_model, shop, start, end, ts_filter.channel)
        spend = self._load_spend(shop, start, end, ts_filter.channel)
        points = build_timeseries(weighted, spend, granularity, ts_filter)
        logger.debug(
            "Timeseries computed",
            shop=shop,
            model=resolved_model.value,
            granularity=granularity.value,
            points=len(points),
        )
        return granularity, points

    def list_attributed_orders(
        self,
        model: AttributionModel | str,
        shop: str,
        start_date: str | date,
        end_date: str | date,
        order_filter: OrderFilter,
    ) -> list[AttributedOrder]:
        """Orders credited to one channel (optionally narrowed to a campaign / ad)."""
        resolved_model = coerce_model(model)
        if not order_filter.channel:
            raise ConfigurationError("Channel is required for order drill-down")
        start, end = self._window(start_date, end_date)
        weighted = self._weighted_window(resolved_model, shop, start, end, order_filter.channel)
        return collect_attributed_orders(weighted, order_filter)

__all__ = [
    "TouchpointStore",
    "SpendStore",
    "ShopSettingsStore",
    "HierarchyMetadataStore",
    "EngineResult",
    "coerce_level",
    "AttributionEngine",
]
