import sys
from datetime import datetime, timedelta
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root on sys.path so 'attribution_backend' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from attribution_backend.main import app  # type: ignore
from attribution_backend.database import Base  # type: ignore
from attribution_backend.api import deps  # type: ignore
"""Pytest fixtures and factories.

All model modules are imported through attribution_backend.models.db before
Base.metadata.create_all() so relationship targets are configured.
"""
from attribution_backend.models.db import (  # noqa: E402
    Ad, AdAccount, AdCampaign, AdSet, AdSpend, EventMetadata, Shop,
)
from attribution_backend.services.attribution_types import SpendRecord, TouchpointEvent  # noqa: E402
from attribution_backend.utils.channels import is_ad_spend_channel  # noqa: E402

# Single shared in-memory connection; the app and the test see the same data
engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_TS = datetime(2024, 1, 15, 10, 0, 0)

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        # per-test isolation: wipe every table, children first
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client(db_session):
    return TestClient(app)

# ---------- In-memory builders for pipeline unit tests ----------

def _touchpoint(order_id: str = "o1", channel: str = "meta-ads", *, minutes: int = 0, **overrides) -> TouchpointEvent:
    values = dict(
        order_id=order_id,
        channel=channel,
        event_timestamp=BASE_TS + timedelta(minutes=minutes),
        total_price=100.0,
        is_paid_channel=is_ad_spend_channel(channel),
    )
    values.update(overrides)
    return TouchpointEvent(**values)

def _spend(channel: str = "meta-ads", spend: float = 10.0, *, minutes: int = 0, **overrides) -> SpendRecord:
    values = dict(channel=channel, date_time=BASE_TS + timedelta(minutes=minutes), spend=spend)
    values.update(overrides)
    return SpendRecord(**values)

@pytest.fixture()
def make_touchpoint():
    return _touchpoint

@pytest.fixture()
def make_spend():
    return _spend

# ---------- Data factory helpers ----------

@pytest.fixture()
def shop_factory(db_session):
    def _create(account_id: str = "acc_1", shop_name: str = "demo-shop.myshopify.com", ignore_vat: bool = False):
        shop = Shop(account_id=account_id, shop_name=shop_name, ignore_vat=ignore_vat)
        db_session.add(shop)
        db_session.commit()
        db_session.refresh(shop)
        return shop
    return _create

@pytest.fixture()
def event_factory(db_session):
    def _create(shop: str, order_id: str, channel: str, event_timestamp: datetime, **fields):
        fields.setdefault("is_paid_channel", is_ad_spend_channel(channel))
        row = EventMetadata(shop=shop, order_id=order_id, channel=channel, event_timestamp=event_timestamp, **fields)
        db_session.add(row)
        db_session.commit()
        return row
    return _create

@pytest.fixture()
def spend_factory(db_session):
    def _create(shop: str, channel: str, date_time: datetime, spend: float, **fields):
        row = AdSpend(shop=shop, channel=channel, date_time=date_time, spend=spend, **fields)
        db_session.add(row)
        db_session.commit()
        return row
    return _create

@pytest.fixture()
def hierarchy_factory(db_session):
    """Create account -> campaign -> ad set -> ad; returns the four rows."""
    def _create(
        *,
        account_ref: str = "act_123",
        campaign_platform_id: str = "c-100",
        ad_set_platform_id: str = "s-200",
        ad_platform_id: str = "a-300",
        campaign_name: str | None = "Summer Sale",
        ad_set_name: str | None = "Lookalikes",
        ad_name: str | None = "Video 1",
    ):
        account = AdAccount(channel="meta-ads", platform_account_id=account_ref, name="Main")
        db_session.add(account)
        db_session.flush()
        campaign = AdCampaign(
            ad_account_id=account.id, platform_campaign_id=campaign_platform_id,
            name=campaign_name, active=True, budget=50.0,
        )
        db_session.add(campaign)
        db_session.flush()
        ad_set = AdSet(ad_campaign_id=campaign.id, platform_ad_set_id=ad_set_platform_id, name=ad_set_name, active=True)
        db_session.add(ad_set)
        db_session.flush()
        ad = Ad(ad_set_id=ad_set.id, platform_ad_id=ad_platform_id, name=ad_name, active=False,
                image_url="https://cdn.example.com/a.jpg")
        db_session.add(ad)
        db_session.commit()
        return account, campaign, ad_set, ad
    return _create
