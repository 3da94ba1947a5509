from collections import defaultdict

import pytest

from attribution_backend.config import ANALYTICS_SETTINGS
from attribution_backend.exceptions import ConfigurationError
from attribution_backend.models.db.enums import AttributionModel
from attribution_backend.services.attribution_selector import coerce_model, linear_weights, select_touchpoints

TOL = float(ANALYTICS_SETTINGS["weight_tolerance"])


def _weights_by_order(weighted):
    totals = defaultdict(float)
    for wt in weighted:
        totals[wt.event.order_id] += wt.weight
    return totals


def test_first_and_last_click_use_overall_flags(make_touchpoint):
    tps = [
        make_touchpoint("o1", "organic", is_first_event_overall=True),
        make_touchpoint("o1", "meta-ads", minutes=5),
        make_touchpoint("o1", "google-ads", minutes=9, is_last_event_overall=True),
    ]
    first = select_touchpoints(AttributionModel.FIRST_CLICK, tps)
    last = select_touchpoints("last_click", tps)
    assert [wt.event.channel for wt in first] == ["organic"]
    assert [wt.event.channel for wt in last] == ["google-ads"]
    assert all(wt.weight == 1.0 for wt in first + last)


def test_last_paid_click_falls_back_per_order(make_touchpoint):
    tps = [
        # order A has paid history: its last paid event wins even though email came later
        make_touchpoint("A", "meta-ads", has_any_paid_events=True, is_last_paid_event_overall=True),
        make_touchpoint("A", "email", minutes=3, has_any_paid_events=True, is_last_event_overall=True),
        # order B never touched a paid channel: last event overall
        make_touchpoint("B", "organic", has_any_paid_events=False),
        make_touchpoint("B", "email", minutes=4, has_any_paid_events=False, is_last_event_overall=True),
    ]
    selected = select_touchpoints(AttributionModel.LAST_PAID_CLICK, tps)
    assert [(wt.event.order_id, wt.event.channel) for wt in selected] == [("A", "meta-ads"), ("B", "email")]


def test_linear_all_splits_channel_then_hierarchy_then_repeats(make_touchpoint):
    ad_a = dict(ad_pk=1, ad_set_pk=10, ad_campaign_pk=100, ad_id="a1")
    ad_b = dict(ad_pk=2, ad_set_pk=10, ad_campaign_pk=100, ad_id="a2")
    tps = [
        make_touchpoint("o1", "meta-ads", **ad_a),
        make_touchpoint("o1", "meta-ads", minutes=1, **ad_a),
        make_touchpoint("o1", "meta-ads", minutes=2, **ad_b),
        make_touchpoint("o1", "organic", minutes=3),
    ]
    weights = [wt.weight for wt in select_touchpoints(AttributionModel.LINEAR_ALL, tps)]
    assert weights == pytest.approx([0.125, 0.125, 0.25, 0.5])
    assert sum(weights) == pytest.approx(1.0, abs=TOL)


def test_linear_all_weights_sum_to_one_per_order(make_touchpoint):
    tps = []
    for i in range(7):
        tps.append(make_touchpoint("o1", ["meta-ads", "organic", "email"][i % 3], minutes=i, ad_pk=i % 2, ad_id=str(i % 2)))
    for i in range(3):
        tps.append(make_touchpoint("o2", "google-ads", minutes=i, ad_pk=i, ad_id=str(i)))
    totals = _weights_by_order(select_touchpoints(AttributionModel.LINEAR_ALL, tps))
    assert set(totals) == {"o1", "o2"}
    for total in totals.values():
        assert abs(total - 1.0) <= TOL


def test_linear_paid_uses_paid_subset_when_present(make_touchpoint):
    tps = [
        make_touchpoint("o1", "meta-ads", ad_pk=1, ad_id="a1"),
        make_touchpoint("o1", "google-ads", minutes=1, ad_pk=7, ad_id="g7"),
        make_touchpoint("o1", "organic", minutes=2),
    ]
    selected = select_touchpoints(AttributionModel.LINEAR_PAID, tps)
    assert [wt.event.channel for wt in selected] == ["meta-ads", "google-ads"]
    assert [wt.weight for wt in selected] == pytest.approx([0.5, 0.5])


def test_linear_paid_without_paid_touchpoints_matches_linear_all(make_touchpoint):
    tps = [
        make_touchpoint("o1", "organic"),
        make_touchpoint("o1", "email", minutes=1),
        make_touchpoint("o1", "email", minutes=2),
    ]
    paid = select_touchpoints(AttributionModel.LINEAR_PAID, tps)
    everything = select_touchpoints(AttributionModel.LINEAR_ALL, tps)
    assert [wt.weight for wt in paid] == pytest.approx([wt.weight for wt in everything])
    assert [wt.weight for wt in paid] == pytest.approx([0.5, 0.25, 0.25])


def test_linear_paid_fallback_is_decided_per_order(make_touchpoint):
    tps = [
        make_touchpoint("A", "meta-ads", ad_pk=1, ad_id="a1"),
        make_touchpoint("B", "organic", minutes=1),
        make_touchpoint("A", "organic", minutes=2),
        make_touchpoint("B", "email", minutes=3),
        make_touchpoint("A", "google-ads", minutes=4, ad_pk=7, ad_id="g7"),
    ]
    selected = select_touchpoints(AttributionModel.LINEAR_PAID, tps)
    credited = [(wt.event.order_id, wt.event.channel, wt.weight) for wt in selected]
    assert credited == [
        ("A", "meta-ads", pytest.approx(0.5)),
        ("B", "organic", pytest.approx(0.5)),
        ("B", "email", pytest.approx(0.5)),
        ("A", "google-ads", pytest.approx(0.5)),
    ]
    totals = _weights_by_order(selected)
    assert totals["A"] == pytest.approx(1.0, abs=TOL)
    assert totals["B"] == pytest.approx(1.0, abs=TOL)


def test_linear_selection_keeps_input_order_across_orders(make_touchpoint):
    tps = [
        make_touchpoint("o1", "organic"),
        make_touchpoint("o2", "organic"),
        make_touchpoint("o1", "email"),
    ]
    selected = select_touchpoints(AttributionModel.LINEAR_ALL, tps)
    assert [(wt.event.order_id, wt.event.channel) for wt in selected] == [("o1", "organic"), ("o2", "organic"), ("o1", "email")]


def test_touchpoints_without_ad_share_one_hierarchy_bucket(make_touchpoint):
    tps = [make_touchpoint("o1", "organic"), make_touchpoint("o1", "organic", minutes=1)]
    assert linear_weights(tps) == pytest.approx([0.5, 0.5])
    assert linear_weights([]) == []


def test_unknown_model_fails_fast(make_touchpoint):
    with pytest.raises(ConfigurationError):
        select_touchpoints("time_decay", [make_touchpoint()])
    with pytest.raises(ValueError):
        coerce_model("")
