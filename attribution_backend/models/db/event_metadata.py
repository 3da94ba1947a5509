from __future__ import annotations
"""Touchpoint rows: one marketing event of one order.

Order money fields are repeated on every event of the order. The position
flags (first / last / last paid) are precomputed over the order's full event
history by the ingestion pipeline, not over any query window.
"""
from sqlalchemy import Integer, String, Boolean, DateTime, Float, Index
from sqlalchemy.orm import Mapped, mapped_column
from attribution_backend.database import Base

class EventMetadata(Base):
    __tablename__ = "event_metadata"
    __table_args__ = (
        Index("ix_event_metadata_shop_ts", "shop", "event_timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    shop: Mapped[str] = mapped_column(String, nullable=False)
    order_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    channel: Mapped[str] = mapped_column(String, nullable=False, index=True)
    event_timestamp: Mapped[DateTime] = mapped_column(DateTime, nullable=False)
    campaign: Mapped[str | None] = mapped_column(String, nullable=True)

    # Platform ids as reported in the click (display only)
    ad_campaign_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ad_set_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ad_id: Mapped[str | None] = mapped_column(String, nullable=True)
    # Internal hierarchy keys, 0 when unresolved
    ad_campaign_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ad_set_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ad_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    total_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_cogs: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    payment_fees: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_tax: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    is_first_event_overall: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_last_event_overall: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_last_paid_event_overall: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_any_paid_events: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_paid_channel: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_first_customer_order: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
