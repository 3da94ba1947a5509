from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from attribution_backend.services.data_sources import SqlSpendStore

SHOP = "demo-shop.myshopify.com"
BASE = "/api/v1/event-analytics"
WINDOW = {"account_id": "acc_1", "start_date": "2024-01-01", "end_date": "2024-01-31"}


@pytest.fixture()
def seeded(shop_factory, event_factory, spend_factory, hierarchy_factory):
    """Two orders: one via a Meta ad, one organic; Meta spend on the same ad plus unattributed spend."""
    shop_factory(account_id="acc_1", shop_name=SHOP)
    _, campaign, ad_set, ad = hierarchy_factory()
    ad_fields = dict(
        ad_campaign_id="c-100", ad_set_id="s-200", ad_id="a-300",
        ad_campaign_pk=campaign.id, ad_set_pk=ad_set.id, ad_pk=ad.id,
    )
    event_factory(SHOP, "o1", "meta-ads", datetime(2024, 1, 10, 9), total_price=5000.0, total_cogs=1000.0,
                  total_tax=500.0, is_first_event_overall=True, is_last_event_overall=True,
                  is_last_paid_event_overall=True, has_any_paid_events=True, is_first_customer_order=True,
                  **ad_fields)
    event_factory(SHOP, "o2", "organic", datetime(2024, 1, 11, 9), total_price=200.0, campaign="newsletter",
                  is_first_event_overall=True, is_last_event_overall=True)
    spend_factory(SHOP, "meta-ads", datetime(2024, 1, 10), 1000.0, impressions=10000, clicks=200, **ad_fields)
    spend_factory(SHOP, "meta-ads", datetime(2024, 1, 12), 50.0)
    return campaign, ad_set, ad


def test_channel_performance(client, seeded):
    resp = client.get(f"{BASE}/channel-performance", params=WINDOW)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    rows = {r["channel"]: r for r in body["result"]["data"]}
    assert rows["meta-ads"]["attributed_revenue"] == 5000.0
    assert rows["meta-ads"]["ad_spend"] == 1050.0
    assert rows["meta-ads"]["roas"] == pytest.approx(5000 / 1050)
    assert rows["organic"]["ad_spend"] == 0.0
    meta = body["result"]["metadata"]
    assert meta["shop_name"] == SHOP
    assert meta["attribution_model"] == "last_paid_click"
    assert meta["attribution_window"] == "event_based"
    assert meta["total_channels"] == 2
    assert "X-Request-ID" in resp.headers


def test_pixel_channel_performance_ad_tree(client, seeded):
    campaign, ad_set, ad = seeded
    resp = client.get(f"{BASE}/pixel-channel-performance", params={**WINDOW, "channel": "meta-ads"})
    assert resp.status_code == 200, resp.text
    result = resp.json()["result"]
    assert result["metadata"]["total_campaigns"] == 2
    assert result["metadata"]["total_ads"] == 2
    real, not_set = result["data"]
    assert real["id"] == campaign.id and real["name"] == "Summer Sale"
    assert "act=123" in real["url"]
    assert real["ad_sets"][0]["ads"][0]["id"] == ad.id
    assert real["ad_sets"][0]["ads"][0]["ctr"] == pytest.approx(2.0)
    assert not_set["id"] == 0 and not_set["name"] == "Not Set" and not_set["url"] is None
    assert not_set["ad_spend"] == 50.0
    assert not_set["net_profit"] == pytest.approx(-50.0)


def test_pixel_channel_performance_campaign_list(client, seeded):
    resp = client.get(f"{BASE}/pixel-channel-performance",
                      params={**WINDOW, "channel": "organic", "attribution_model": "first_click"})
    assert resp.status_code == 200, resp.text
    result = resp.json()["result"]
    (row,) = result["data"]
    assert (row["campaign"], row["name"]) == ("newsletter", "newsletter")
    assert "ad_spend" not in row
    assert result["metadata"]["total_campaigns"] == 1


def test_timeseries_and_orders(client, seeded):
    resp = client.get(f"{BASE}/timeseries", params={**WINDOW, "filter_type": "channel", "channel": "meta-ads"})
    assert resp.status_code == 200, resp.text
    data = resp.json()["result"]["data"]
    assert data["aggregation_level"] == "daily"
    assert [p["time_period"] for p in data["timeseries"]] == ["2024-01-10", "2024-01-12"]
    assert data["timeseries"][0]["roas"] == pytest.approx(5.0)

    resp = client.get(f"{BASE}/orders-attribution", params={**WINDOW, "channel": "meta-ads"})
    assert resp.status_code == 200, resp.text
    result = resp.json()["result"]
    assert result["total"] == 1
    assert result["orders"][0]["order_id"] == "o1"
    assert result["orders"][0]["attributed_revenue"] == 5000.0


def test_error_mapping(client, seeded, monkeypatch):
    resp = client.get(f"{BASE}/channel-performance", params={**WINDOW, "account_id": "nope"})
    assert resp.status_code == 404
    assert resp.json()["success"] is False

    resp = client.get(f"{BASE}/channel-performance", params={**WINDOW, "start_date": "2024-02-01"})
    assert resp.status_code == 400

    resp = client.get(f"{BASE}/channel-performance", params={**WINDOW, "attribution_model": "u_shaped"})
    assert resp.status_code == 422

    resp = client.get(f"{BASE}/timeseries", params={**WINDOW, "filter_type": "channel"})
    assert resp.status_code == 400

    def broken(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("warehouse down"))

    monkeypatch.setattr(SqlSpendStore, "fetch_spend", broken)
    resp = client.get(f"{BASE}/channel-performance", params=WINDOW)
    assert resp.status_code == 503


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
