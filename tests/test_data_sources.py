from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from attribution_backend.exceptions import ShopNotFoundError
from attribution_backend.services.attribution_types import HierarchyPks
from attribution_backend.services.data_sources import (
    SqlHierarchyMetadataStore,
    SqlShopStore,
    SqlSpendStore,
    SqlTouchpointStore,
)

SHOP = "demo-shop.myshopify.com"


def test_touchpoint_store_applies_half_open_window_and_channel(db_session, event_factory):
    event_factory(SHOP, "o1", "meta-ads", datetime(2024, 1, 1, 0, 0), total_price=10.0, ad_id="a1", ad_pk=4)
    event_factory(SHOP, "o1", "organic", datetime(2024, 1, 31, 23, 0), total_price=10.0)
    event_factory(SHOP, "o2", "organic", datetime(2024, 2, 1, 0, 0))
    event_factory("other-shop", "o3", "organic", datetime(2024, 1, 5))

    store = SqlTouchpointStore(db_session)
    rows = store.fetch_touchpoints(SHOP, date(2024, 1, 1), date(2024, 2, 1))
    assert [(r.order_id, r.channel) for r in rows] == [("o1", "meta-ads"), ("o1", "organic")]
    assert rows[0].ad_pk == 4 and rows[0].is_paid_channel
    assert rows[1].campaign == "" and rows[1].ad_id == ""

    organic = store.fetch_touchpoints(SHOP, date(2024, 1, 1), date(2024, 2, 1), channel="organic")
    assert [r.channel for r in organic] == ["organic"]


def test_spend_store_maps_rows(db_session, spend_factory):
    spend_factory(SHOP, "meta-ads", datetime(2024, 1, 2, 5), 12.5, impressions=100, clicks=3, ad_id="a1", ad_pk=7)
    spend_factory(SHOP, "google-ads", datetime(2024, 1, 3), 4.0)
    rows = SqlSpendStore(db_session).fetch_spend(SHOP, date(2024, 1, 1), date(2024, 1, 4), channel="meta-ads")
    (row,) = rows
    assert (row.spend, row.impressions, row.clicks, row.ad_pk) == (12.5, 100, 3, 7)


def test_shop_store(db_session, shop_factory):
    shop_factory(account_id="acc_9", shop_name=SHOP, ignore_vat=True)
    store = SqlShopStore(db_session)
    assert store.resolve_shop_name("acc_9") == SHOP
    assert store.fetch_shop_vat_setting(SHOP).ignore_vat is True
    assert store.fetch_shop_vat_setting("unknown").ignore_vat is False
    with pytest.raises(ShopNotFoundError):
        store.resolve_shop_name("missing")


def test_hierarchy_metadata_lookup(db_session, hierarchy_factory):
    _, campaign, ad_set, ad = hierarchy_factory()
    metadata = SqlHierarchyMetadataStore(db_session).fetch_hierarchy_metadata(
        HierarchyPks(campaign=[campaign.id, 999], ad_set=[ad_set.id], ad=[ad.id])
    )
    assert metadata.campaigns[campaign.id].name == "Summer Sale"
    assert metadata.campaigns[campaign.id].account_ref == "act_123"
    assert 999 not in metadata.campaigns
    assert metadata.ad_sets[ad_set.id].platform_id == "s-200"
    assert metadata.ads[ad.id].image_url == "https://cdn.example.com/a.jpg"


def test_hierarchy_metadata_degrades_per_entity(db_session, hierarchy_factory, monkeypatch):
    _, campaign, ad_set, ad = hierarchy_factory()
    campaign_id, ad_set_id, ad_id = campaign.id, ad_set.id, ad.id
    store = SqlHierarchyMetadataStore(db_session)
    real_execute = db_session.execute
    rollbacks = []

    def flaky_execute(stmt, *args, **kwargs):
        if "ad_sets" in str(stmt):
            raise OperationalError("SELECT", {}, Exception("ad_sets unavailable"))
        return real_execute(stmt, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", flaky_execute)
    monkeypatch.setattr(db_session, "rollback", lambda: rollbacks.append(True))
    metadata = store.fetch_hierarchy_metadata(
        HierarchyPks(campaign=[campaign_id], ad_set=[ad_set_id], ad=[ad_id])
    )
    assert metadata.ad_sets == {}
    assert metadata.campaigns[campaign_id].name == "Summer Sale"
    assert metadata.ads[ad_id].platform_id == "a-300"
    # the failed lookup is rolled back before the ads query runs
    assert rollbacks == [True]
