"""
Pydantic query schemas for the event-based analytics endpoints.

Cross-field checks (start <= end, range length) are left to the engine so
they surface as 400 configuration errors rather than 422s.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from attribution_backend.config import ANALYTICS_SETTINGS
from ..db.enums import AttributionModel, TimeseriesFilterType

_DEFAULT_MODEL = AttributionModel(str(ANALYTICS_SETTINGS["default_attribution_model"]))

class AnalyticsWindowQuery(BaseModel):
    account_id: str = Field(min_length=1, description="Account whose shop is analysed")
    start_date: date = Field(description="First day of the window (YYYY-MM-DD, inclusive)")
    end_date: date = Field(description="Last day of the window (YYYY-MM-DD, inclusive)")
    attribution_model: AttributionModel = _DEFAULT_MODEL

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "account_id": "acc_123",
            "start_date": "2025-06-01",
            "end_date": "2025-06-30",
            "attribution_model": "last_paid_click",
        }
    })

class PixelChannelQuery(AnalyticsWindowQuery):
    channel: str = Field(min_length=1, description="Channel to break down (e.g. meta-ads, organic)")

class TimeseriesQuery(AnalyticsWindowQuery):
    filter_type: TimeseriesFilterType = TimeseriesFilterType.ALL_CHANNELS
    channel: Optional[str] = None
    ad_campaign_pk: Optional[int] = Field(None, ge=0)
    ad_set_pk: Optional[int] = Field(None, ge=0)
    ad_pk: Optional[int] = Field(None, ge=0)

class OrdersAttributionQuery(AnalyticsWindowQuery):
    channel: str = Field(min_length=1)
    campaign: Optional[str] = None
    ad_campaign_pk: Optional[int] = Field(None, ge=0)
    ad_set_pk: Optional[int] = Field(None, ge=0)
    ad_pk: Optional[int] = Field(None, ge=0)
    first_time_customers_only: bool = False
