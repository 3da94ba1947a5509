from __future__ import annotations
"""Ad platform hierarchy: account -> campaign -> ad set -> ad.

Only used as display metadata for the ad-level tree (names, status, budgets,
creative thumbnails, account reference for deep links).
"""
from sqlalchemy import Integer, String, Boolean, Float, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from attribution_backend.database import Base

class AdAccount(Base):
    __tablename__ = "ad_accounts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    channel: Mapped[str] = mapped_column(String, nullable=False)
    # e.g. "act_123456" for Meta
    platform_account_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)

    campaigns: Mapped[list["AdCampaign"]] = relationship("AdCampaign", back_populates="account")

class AdCampaign(Base):
    __tablename__ = "ad_campaigns"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ad_account_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ad_accounts.id"), nullable=True, index=True)
    platform_campaign_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)

    account: Mapped["AdAccount | None"] = relationship("AdAccount", back_populates="campaigns")
    ad_sets: Mapped[list["AdSet"]] = relationship("AdSet", back_populates="campaign")

class AdSet(Base):
    __tablename__ = "ad_sets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ad_campaign_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ad_campaigns.id"), nullable=True, index=True)
    platform_ad_set_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)

    campaign: Mapped["AdCampaign | None"] = relationship("AdCampaign", back_populates="ad_sets")
    ads: Mapped[list["Ad"]] = relationship("Ad", back_populates="ad_set")

class Ad(Base):
    __tablename__ = "ads"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ad_set_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ad_sets.id"), nullable=True, index=True)
    platform_ad_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    ad_set: Mapped["AdSet | None"] = relationship("AdSet", back_populates="ads")
