"""Full outer join of attribution totals with spend totals, plus derived ratios.

A group present on only one side still yields a row: attribution-only groups
get zero spend, spend-only groups get zero attribution. Ratios are zero
whenever their denominator is not positive, never NaN or infinity.
"""
from __future__ import annotations

from typing import Mapping, Optional

from attribution_backend.models.db.enums import AggregationLevel
from attribution_backend.services.aggregator import AttributionTotals, SpendTotals
from attribution_backend.services.attribution_types import (
    AttributedGroup,
    GroupKey,
    MetricBundle,
    VatSettings,
)
from attribution_backend.utils.metrics import ctr_pct, guarded_ratio


def derive_metrics(bundle: MetricBundle, level: AggregationLevel, ignore_vat: bool) -> MetricBundle:
    """(Re)compute roas / cpc / ctr / net_profit / first_time_customer_roas in place.

    Used for leaf rows after the join and for parents re-derived from summed
    children.
    """
    vat_component = 0.0 if ignore_vat else bundle.attributed_tax
    net_profit = (
        bundle.attributed_revenue
        - vat_component
        - bundle.attributed_cogs
        - bundle.attributed_payment_fees
    )
    if level is AggregationLevel.CAMPAIGN:
        # organic / direct channels have no spend concept
        bundle.net_profit = net_profit
        return bundle

    spend = bundle.ad_spend or 0.0
    bundle.net_profit = net_profit - spend
    bundle.roas = guarded_ratio(bundle.attributed_revenue, spend)
    bundle.first_time_customer_roas = guarded_ratio(bundle.first_time_customer_revenue, spend)
    if level is AggregationLevel.AD:
        bundle.cpc = guarded_ratio(spend, bundle.clicks or 0)
        bundle.ctr = ctr_pct(bundle.clicks or 0, bundle.impressions or 0)
    return bundle


def build_bundle(
    attribution: Optional[AttributionTotals],
    spend: Optional[SpendTotals],
    level: AggregationLevel,
    ignore_vat: bool,
) -> MetricBundle:
    """Merge one joined pair into a MetricBundle (missing side counts as zero)."""
    bundle = MetricBundle()
    if attribution is not None:
        bundle.attributed_orders = attribution.attributed_orders
        bundle.attributed_revenue = attribution.attributed_revenue
        bundle.distinct_orders_touched = attribution.distinct_orders_touched
        bundle.attributed_cogs = attribution.attributed_cogs
        bundle.attributed_payment_fees = attribution.attributed_payment_fees
        bundle.attributed_tax = attribution.attributed_tax
        bundle.first_time_customer_orders = attribution.first_time_customer_orders
        bundle.first_time_customer_revenue = attribution.first_time_customer_revenue

    if level is not AggregationLevel.CAMPAIGN:
        bundle.ad_spend = spend.ad_spend if spend is not None else 0.0
    if level is AggregationLevel.AD:
        bundle.impressions = spend.impressions if spend is not None else 0
        bundle.clicks = spend.clicks if spend is not None else 0
        bundle.conversions = spend.conversions if spend is not None else 0.0

    return derive_metrics(bundle, level, ignore_vat)


def sort_by_revenue(groups: list[AttributedGroup]) -> list[AttributedGroup]:
    # sorted() is stable: ties keep input order
    return sorted(groups, key=lambda g: g.metrics.attributed_revenue, reverse=True)


def join_with_spend(
    attribution: Mapping[GroupKey, AttributionTotals],
    spend: Mapping[GroupKey, SpendTotals],
    level: AggregationLevel,
    vat: VatSettings,
) -> list[AttributedGroup]:
    """Full outer join on GroupKey, sorted by attributed revenue descending.

    Campaign level never joins spend. Input order for ties is attribution
    groups first (first-seen order), then spend-only groups.
    """
    joined: list[AttributedGroup] = []
    spend_side: Mapping[GroupKey, SpendTotals] = {} if level is AggregationLevel.CAMPAIGN else spend

    for key, attr_totals in attribution.items():
        spend_totals = spend_side.get(key)
        out_key = attr_totals.key.coalesce(spend_totals.key if spend_totals is not None else None)
        joined.append(
            AttributedGroup(
                key=out_key,
                metrics=build_bundle(attr_totals, spend_totals, level, vat.ignore_vat),
            )
        )

    for key, spend_totals in spend_side.items():
        if key in attribution:
            continue
        joined.append(
            AttributedGroup(
                key=spend_totals.key,
                metrics=build_bundle(None, spend_totals, level, vat.ignore_vat),
            )
        )

    return sort_by_revenue(joined)


__all__ = ["derive_metrics", "build_bundle", "sort_by_revenue", "join_with_spend"]
