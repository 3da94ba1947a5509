"""
Dependencies for database sessions and the analytics service.
"""
from typing import Generator
from fastapi import Depends
from sqlalchemy.orm import Session
from attribution_backend.database import SessionLocal
from attribution_backend.services.event_analytics import EventAnalyticsService
from attribution_backend.utils import get_logger

logger = get_logger(__name__)

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_event_analytics_service(db: Session = Depends(get_db)) -> EventAnalyticsService:
    return EventAnalyticsService(db)
