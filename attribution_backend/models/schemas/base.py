"""
Base schemas used across the application.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict

class ResponseBase(BaseModel):
    """Envelope shared by all analytics endpoints: ``{"success": true, "result": {...}}``."""
    success: bool = True
    message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

class QueryMetadata(BaseModel):
    """Echo of the request window attached to every analytics result."""
    shop_name: str
    start_date: str
    end_date: str
    attribution_model: str
    attribution_window: str = "event_based"
    query_timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
