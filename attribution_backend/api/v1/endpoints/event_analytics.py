"""
Event-based attribution analytics endpoints.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from attribution_backend.api.deps import get_event_analytics_service
from attribution_backend.models.schemas import (
    AnalyticsWindowQuery,
    OrdersAttributionQuery,
    PixelChannelQuery,
    ResponseBase,
    TimeseriesQuery,
)
from attribution_backend.services.event_analytics import EventAnalyticsService
from attribution_backend.utils import get_logger, log_business_event, log_performance
import time

router = APIRouter()
logger = get_logger(__name__)

@router.get(
    "/channel-performance",
    response_model=ResponseBase,
    summary="Attributed performance per channel",
)
async def get_channel_performance(
    request: Request,
    query: AnalyticsWindowQuery = Depends(),
    service: EventAnalyticsService = Depends(get_event_analytics_service),
):
    """Channel rows with attributed revenue, costs, ad spend and ROAS."""
    start = time.time()
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Channel performance request",
        account_id=query.account_id,
        attribution_model=query.attribution_model.value,
        request_id=request_id,
    )
    result = service.channel_performance(query)
    log_performance(
        operation="get_channel_performance",
        duration_ms=(time.time() - start) * 1000,
        additional_data={"account_id": query.account_id, "request_id": request_id},
    )
    return ResponseBase(result=result)

@router.get(
    "/pixel-channel-performance",
    response_model=ResponseBase,
    summary="Drill into one channel",
)
async def get_pixel_channel_performance(
    request: Request,
    query: PixelChannelQuery = Depends(),
    service: EventAnalyticsService = Depends(get_event_analytics_service),
):
    """Campaign -> ad set -> ad tree for ad spend channels, campaign list otherwise."""
    start = time.time()
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Pixel channel performance request",
        account_id=query.account_id,
        channel=query.channel,
        attribution_model=query.attribution_model.value,
        request_id=request_id,
    )
    result = service.pixel_channel_performance(query)
    log_performance(
        operation="get_pixel_channel_performance",
        duration_ms=(time.time() - start) * 1000,
        additional_data={"account_id": query.account_id, "channel": query.channel, "request_id": request_id},
    )
    return ResponseBase(result=result)

@router.get(
    "/timeseries",
    response_model=ResponseBase,
    summary="Attributed revenue vs ad spend over time",
)
async def get_timeseries(
    request: Request,
    query: TimeseriesQuery = Depends(),
    service: EventAnalyticsService = Depends(get_event_analytics_service),
):
    """Hourly points for a single-day window, daily points otherwise."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Timeseries request",
        account_id=query.account_id,
        filter_type=query.filter_type.value,
        channel=query.channel,
        request_id=request_id,
    )
    return ResponseBase(result=service.timeseries(query))

@router.get(
    "/orders-attribution",
    response_model=ResponseBase,
    summary="Orders credited to a channel, campaign or ad",
)
async def get_orders_attribution(
    request: Request,
    query: OrdersAttributionQuery = Depends(),
    service: EventAnalyticsService = Depends(get_event_analytics_service),
):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Orders attribution request",
        account_id=query.account_id,
        channel=query.channel,
        request_id=request_id,
    )
    result = service.orders_attribution(query)
    log_business_event(
        "orders_attribution_viewed",
        {"account_id": query.account_id, "channel": query.channel, "total": result["total"]},
        request_id=request_id,
    )
    return ResponseBase(result=result)
