from .base import ResponseBase, QueryMetadata
from .analytics import (
    AnalyticsWindowQuery,
    PixelChannelQuery,
    TimeseriesQuery,
    OrdersAttributionQuery,
)

__all__ = [
    # Base
    "ResponseBase",
    "QueryMetadata",

    # Analytics queries
    "AnalyticsWindowQuery",
    "PixelChannelQuery",
    "TimeseriesQuery",
    "OrdersAttributionQuery",
]
