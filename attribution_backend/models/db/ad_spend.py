from __future__ import annotations
"""SQLAlchemy model for ad platform spend rows (hourly granularity)."""
from sqlalchemy import Integer, String, DateTime, Float, Index
from sqlalchemy.orm import Mapped, mapped_column
from attribution_backend.database import Base

class AdSpend(Base):
    __tablename__ = "ad_spend"
    __table_args__ = (
        Index("ix_ad_spend_shop_dt", "shop", "date_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    shop: Mapped[str] = mapped_column(String, nullable=False)
    channel: Mapped[str] = mapped_column(String, nullable=False, index=True)
    date_time: Mapped[DateTime] = mapped_column(DateTime, nullable=False)
    spend: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    impressions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    conversions: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    ad_campaign_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ad_set_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ad_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ad_campaign_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ad_set_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ad_pk: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
