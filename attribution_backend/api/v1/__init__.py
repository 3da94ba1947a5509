"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import event_analytics

api_router = APIRouter()

api_router.include_router(
    event_analytics.router,
    prefix="/event-analytics",
    tags=["event-analytics"]
)
