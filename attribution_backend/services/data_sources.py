"""SQLAlchemy-backed collaborator stores for the attribution engine.

Touchpoint, spend and shop lookups let database errors propagate: the engine
must not report revenue or spend from a partial read. Hierarchy metadata is
looked up per entity type and each lookup degrades to an empty mapping on
failure.
"""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attribution_backend.exceptions import ShopNotFoundError
from attribution_backend.models.db import Ad, AdAccount, AdCampaign, AdSet, AdSpend, EventMetadata, Shop
from attribution_backend.services.attribution_types import (
    AdMetadata,
    AdSetMetadata,
    CampaignMetadata,
    HierarchyMetadata,
    HierarchyPks,
    SpendRecord,
    TouchpointEvent,
    VatSettings,
)
from attribution_backend.utils import get_logger

logger = get_logger(__name__)


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _touchpoint_from_row(row: EventMetadata) -> TouchpointEvent:
    return TouchpointEvent(
        order_id=row.order_id,
        channel=row.channel,
        event_timestamp=row.event_timestamp,
        campaign=row.campaign or "",
        ad_campaign_id=row.ad_campaign_id or "",
        ad_set_id=row.ad_set_id or "",
        ad_id=row.ad_id or "",
        ad_campaign_pk=row.ad_campaign_pk or 0,
        ad_set_pk=row.ad_set_pk or 0,
        ad_pk=row.ad_pk or 0,
        total_price=float(row.total_price or 0),
        total_cogs=float(row.total_cogs or 0),
        payment_fees=float(row.payment_fees or 0),
        total_tax=float(row.total_tax or 0),
        is_first_event_overall=bool(row.is_first_event_overall),
        is_last_event_overall=bool(row.is_last_event_overall),
        is_last_paid_event_overall=bool(row.is_last_paid_event_overall),
        has_any_paid_events=bool(row.has_any_paid_events),
        is_paid_channel=bool(row.is_paid_channel),
        is_first_customer_order=bool(row.is_first_customer_order),
    )


def _spend_from_row(row: AdSpend) -> SpendRecord:
    return SpendRecord(
        channel=row.channel,
        date_time=row.date_time,
        spend=float(row.spend or 0),
        impressions=int(row.impressions or 0),
        clicks=int(row.clicks or 0),
        conversions=float(row.conversions or 0),
        ad_campaign_id=row.ad_campaign_id or "",
        ad_set_id=row.ad_set_id or "",
        ad_id=row.ad_id or "",
        ad_campaign_pk=row.ad_campaign_pk or 0,
        ad_set_pk=row.ad_set_pk or 0,
        ad_pk=row.ad_pk or 0,
    )


class SqlTouchpointStore:
    def __init__(self, db: Session):
        self.db = db

    def fetch_touchpoints(
        self, shop: str, start_date: date, end_date_exclusive: date, channel: Optional[str] = None
    ) -> list[TouchpointEvent]:
        stmt = select(EventMetadata).where(
            EventMetadata.shop == shop,
            EventMetadata.event_timestamp >= _day_start(start_date),
            EventMetadata.event_timestamp < _day_start(end_date_exclusive),
        )
        if channel:
            stmt = stmt.where(EventMetadata.channel == channel)
        stmt = stmt.order_by(EventMetadata.order_id, EventMetadata.event_timestamp, EventMetadata.id)
        rows = self.db.execute(stmt).scalars().all()
        logger.debug("Touchpoints fetched", shop=shop, channel=channel, rows=len(rows))
        return [_touchpoint_from_row(r) for r in rows]


class SqlSpendStore:
    def __init__(self, db: Session):
        self.db = db

    def fetch_spend(
        self, shop: str, start_date: date, end_date_exclusive: date, channel: Optional[str] = None
    ) -> list[SpendRecord]:
        stmt = select(AdSpend).where(
            AdSpend.shop == shop,
            AdSpend.date_time >= _day_start(start_date),
            AdSpend.date_time < _day_start(end_date_exclusive),
        )
        if channel:
            stmt = stmt.where(AdSpend.channel == channel)
        stmt = stmt.order_by(AdSpend.date_time, AdSpend.id)
        rows = self.db.execute(stmt).scalars().all()
        logger.debug("Spend rows fetched", shop=shop, channel=channel, rows=len(rows))
        return [_spend_from_row(r) for r in rows]


class SqlShopStore:
    def __init__(self, db: Session):
        self.db = db

    def resolve_shop_name(self, account_id: str) -> str:
        """Map an account id to its shop name.

        Raises:
            ShopNotFoundError: no shop registered for the account
        """
        shop_name = self.db.execute(
            select(Shop.shop_name).where(Shop.account_id == account_id)
        ).scalar_one_or_none()
        if shop_name is None:
            logger.warning("Shop lookup failed", account_id=account_id)
            raise ShopNotFoundError(account_id)
        return shop_name

    def fetch_shop_vat_setting(self, shop: str) -> VatSettings:
        # unknown shops keep the default (VAT subtracted)
        ignore_vat = self.db.execute(
            select(Shop.ignore_vat).where(Shop.shop_name == shop)
        ).scalar_one_or_none()
        return VatSettings(ignore_vat=bool(ignore_vat))


class SqlHierarchyMetadataStore:
    def __init__(self, db: Session):
        self.db = db

    def _campaigns(self, pks: list[int]) -> dict[int, CampaignMetadata]:
        if not pks:
            return {}
        try:
            rows = self.db.execute(
                select(AdCampaign, AdAccount.platform_account_id)
                .join(AdAccount, AdAccount.id == AdCampaign.ad_account_id, isouter=True)
                .where(AdCampaign.id.in_(pks))
            ).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Campaign metadata lookup failed", pks=len(pks), error=str(e))
            return {}
        return {
            c.id: CampaignMetadata(
                id=c.id,
                name=c.name,
                active=bool(c.active),
                budget=c.budget,
                platform_id=c.platform_campaign_id or "",
                account_ref=account_ref,
            )
            for c, account_ref in rows
        }

    def _ad_sets(self, pks: list[int]) -> dict[int, AdSetMetadata]:
        if not pks:
            return {}
        try:
            rows = self.db.execute(select(AdSet).where(AdSet.id.in_(pks))).scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Ad set metadata lookup failed", pks=len(pks), error=str(e))
            return {}
        return {
            s.id: AdSetMetadata(
                id=s.id,
                name=s.name,
                active=bool(s.active),
                budget=s.budget,
                platform_id=s.platform_ad_set_id or "",
            )
            for s in rows
        }

    def _ads(self, pks: list[int]) -> dict[int, AdMetadata]:
        if not pks:
            return {}
        try:
            rows = self.db.execute(select(Ad).where(Ad.id.in_(pks))).scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Ad metadata lookup failed", pks=len(pks), error=str(e))
            return {}
        return {
            a.id: AdMetadata(
                id=a.id,
                name=a.name,
                active=bool(a.active),
                image_url=a.image_url,
                platform_id=a.platform_ad_id or "",
            )
            for a in rows
        }

    def fetch_hierarchy_metadata(self, pks: HierarchyPks) -> HierarchyMetadata:
        return HierarchyMetadata(
            campaigns=self._campaigns(pks.campaign),
            ad_sets=self._ad_sets(pks.ad_set),
            ads=self._ads(pks.ad),
        )


__all__ = [
    "SqlTouchpointStore",
    "SqlSpendStore",
    "SqlShopStore",
    "SqlHierarchyMetadataStore",
]
