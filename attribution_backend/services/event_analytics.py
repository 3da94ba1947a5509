"""Event-based analytics: response shaping around the attribution engine.

Resolves the account's shop, runs the engine at the level the endpoint needs
and builds the ``result`` payload (``data`` + ``metadata``) the API returns.
Ad manager links are attached here, after the engine has organized the tree.
"""
from __future__ import annotations

import time
from typing import Any

from sqlalchemy.orm import Session

from attribution_backend.config import HIERARCHY_SETTINGS
from attribution_backend.models.db.enums import AggregationLevel
from attribution_backend.models.schemas import (
    AnalyticsWindowQuery,
    OrdersAttributionQuery,
    PixelChannelQuery,
    QueryMetadata,
    TimeseriesQuery,
)
from attribution_backend.services.ad_manager_urls import attach_ad_manager_urls
from attribution_backend.services.attributed_orders import OrderFilter
from attribution_backend.services.attribution_engine import AttributionEngine
from attribution_backend.services.attribution_timeseries import TimeseriesFilter
from attribution_backend.services.data_sources import (
    SqlHierarchyMetadataStore,
    SqlShopStore,
    SqlSpendStore,
    SqlTouchpointStore,
)
from attribution_backend.services.hierarchy_organizer import tree_counts
from attribution_backend.utils import get_logger, log_performance
from attribution_backend.utils.channels import is_ad_spend_channel

logger = get_logger(__name__)


class EventAnalyticsService:
    def __init__(self, db: Session, engine: AttributionEngine | None = None):
        self.shops = SqlShopStore(db)
        self.engine = engine or AttributionEngine(
            touchpoints=SqlTouchpointStore(db),
            spend=SqlSpendStore(db),
            shops=self.shops,
            hierarchy=SqlHierarchyMetadataStore(db),
        )

    def _metadata(self, shop_name: str, query: AnalyticsWindowQuery, **extra: Any) -> dict[str, Any]:
        base = QueryMetadata(
            shop_name=shop_name,
            start_date=query.start_date.isoformat(),
            end_date=query.end_date.isoformat(),
            attribution_model=query.attribution_model.value,
        ).model_dump()
        return {**base, **extra}

    # ------------------------------------------------------------------ #
    def channel_performance(self, query: AnalyticsWindowQuery) -> dict[str, Any]:
        start = time.time()
        shop_name = self.shops.resolve_shop_name(query.account_id)
        groups = self.engine.compute(
            query.attribution_model, AggregationLevel.CHANNEL, shop_name, query.start_date, query.end_date
        )
        rows = [g.to_dict(AggregationLevel.CHANNEL) for g in groups]
        log_performance(
            operation="event_analytics.channel_performance",
            duration_ms=(time.time() - start) * 1000,
            additional_data={"account_id": query.account_id, "channels": len(rows)},
        )
        return {"data": rows, "metadata": self._metadata(shop_name, query, total_channels=len(rows))}

    def pixel_channel_performance(self, query: PixelChannelQuery) -> dict[str, Any]:
        """Ad tree for ad spend channels, campaign list for everything else."""
        start = time.time()
        shop_name = self.shops.resolve_shop_name(query.account_id)

        if is_ad_spend_channel(query.channel):
            tree = self.engine.compute(
                query.attribution_model, AggregationLevel.AD, shop_name,
                query.start_date, query.end_date, channel=query.channel,
            )
            attach_ad_manager_urls(tree, query.channel)
            data = [campaign.to_dict() for campaign in tree]
            metadata = self._metadata(shop_name, query, channel=query.channel, **tree_counts(tree))
            result_type = "ad_hierarchy"
        else:
            groups = self.engine.compute(
                query.attribution_model, AggregationLevel.CAMPAIGN, shop_name,
                query.start_date, query.end_date, channel=query.channel,
            )
            data = []
            for group in groups:
                row = group.to_dict(AggregationLevel.CAMPAIGN)
                row["name"] = row["campaign"] or HIERARCHY_SETTINGS["not_set_label"]
                data.append(row)
            metadata = self._metadata(shop_name, query, channel=query.channel, total_campaigns=len(data))
            result_type = "campaign_list"

        logger.info(
            "Pixel channel performance computed",
            account_id=query.account_id,
            channel=query.channel,
            attribution_model=query.attribution_model.value,
            result_type=result_type,
            item_count=len(data),
        )
        log_performance(
            operation="event_analytics.pixel_channel_performance",
            duration_ms=(time.time() - start) * 1000,
            additional_data={"account_id": query.account_id, "channel": query.channel},
        )
        return {"data": data, "metadata": metadata}

    def timeseries(self, query: TimeseriesQuery) -> dict[str, Any]:
        shop_name = self.shops.resolve_shop_name(query.account_id)
        ts_filter = TimeseriesFilter(
            type=query.filter_type,
            channel=query.channel,
            ad_campaign_pk=query.ad_campaign_pk,
            ad_set_pk=query.ad_set_pk,
            ad_pk=query.ad_pk,
        )
        granularity, points = self.engine.compute_timeseries(
            query.attribution_model, shop_name, query.start_date, query.end_date, ts_filter
        )
        return {
            "data": {
                "timeseries": [p.to_dict(granularity) for p in points],
                "aggregation_level": granularity.value,
            },
            "metadata": self._metadata(shop_name, query, filter=ts_filter.to_dict()),
        }

    def orders_attribution(self, query: OrdersAttributionQuery) -> dict[str, Any]:
        shop_name = self.shops.resolve_shop_name(query.account_id)
        order_filter = OrderFilter(
            channel=query.channel,
            campaign=query.campaign,
            ad_campaign_pk=query.ad_campaign_pk,
            ad_set_pk=query.ad_set_pk,
            ad_pk=query.ad_pk,
            first_time_customers_only=query.first_time_customers_only,
        )
        orders = self.engine.list_attributed_orders(
            query.attribution_model, shop_name, query.start_date, query.end_date, order_filter
        )
        logger.info(
            "Attributed orders listed",
            account_id=query.account_id,
            channel=query.channel,
            total=len(orders),
        )
        return {"orders": [o.to_dict() for o in orders], "total": len(orders)}


__all__ = ["EventAnalyticsService"]
