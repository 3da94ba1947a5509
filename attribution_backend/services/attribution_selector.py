"""Attribution selection: which touchpoints of an order get credit, and how much.

Click models are per-touchpoint flag filters with weight 1. Linear models
split one unit of credit per order in three equal-split steps, always in
this order:

1. across the distinct channels the order touched,
2. across the distinct ad hierarchies (ad_pk, ad_set_pk, ad_campaign_pk)
   the order touched within that channel,
3. across the repeated touchpoints sharing order + channel + hierarchy.

Each divisor is a partition count over the order's touchpoint set in the
window (for linear_paid: over the paid subset when the order has one), so
the weights of one order always sum to 1.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from attribution_backend.exceptions import ConfigurationError
from attribution_backend.models.db.enums import AttributionModel
from attribution_backend.services.attribution_types import TouchpointEvent, WeightedTouchpoint


def coerce_model(model: AttributionModel | str) -> AttributionModel:
    """Resolve a model value, failing fast on anything outside the closed set."""
    if isinstance(model, AttributionModel):
        return model
    try:
        return AttributionModel(model)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown attribution model: {model}") from exc


def _is_last_paid_click_credit(tp: TouchpointEvent) -> bool:
    # per-order fallback: orders without paid history use their last event
    if tp.has_any_paid_events:
        return tp.is_last_paid_event_overall
    return tp.is_last_event_overall


def linear_weights(touchpoints: Sequence[TouchpointEvent]) -> list[float]:
    """Equal-split weights for the touchpoints of a single order.

    Returns weights aligned with ``touchpoints``.
    """
    if not touchpoints:
        return []
    channels = {tp.channel for tp in touchpoints}
    hierarchies_by_channel: dict[str, set[tuple[int, int, int]]] = defaultdict(set)
    repeats: dict[tuple[str, tuple[int, int, int]], int] = defaultdict(int)
    for tp in touchpoints:
        hierarchies_by_channel[tp.channel].add(tp.ad_hierarchy)
        repeats[(tp.channel, tp.ad_hierarchy)] += 1

    weights = []
    for tp in touchpoints:
        weight = 1.0 / len(channels)
        weight /= len(hierarchies_by_channel[tp.channel])
        weight /= repeats[(tp.channel, tp.ad_hierarchy)]
        weights.append(weight)
    return weights


def _group_by_order(touchpoints: Iterable[TouchpointEvent]) -> dict[str, list[tuple[int, TouchpointEvent]]]:
    by_order: dict[str, list[tuple[int, TouchpointEvent]]] = defaultdict(list)
    for idx, tp in enumerate(touchpoints):
        by_order[tp.order_id].append((idx, tp))
    return by_order


def _select_linear(touchpoints: Sequence[TouchpointEvent], paid_only: bool) -> list[WeightedTouchpoint]:
    selected: list[tuple[int, WeightedTouchpoint]] = []
    for members in _group_by_order(touchpoints).values():
        if paid_only:
            paid = [(idx, tp) for idx, tp in members if tp.is_paid_channel]
            # window-scoped fallback: no paid touchpoint in the window -> all of them
            if paid:
                members = paid
        weights = linear_weights([tp for _, tp in members])
        selected.extend(
            (idx, WeightedTouchpoint(event=tp, weight=w))
            for (idx, tp), w in zip(members, weights)
        )
    # keep input order so downstream grouping and tie-breaking stay stable
    selected.sort(key=lambda item: item[0])
    return [wt for _, wt in selected]


def select_touchpoints(
    model: AttributionModel | str,
    touchpoints: Sequence[TouchpointEvent],
) -> list[WeightedTouchpoint]:
    """Apply an attribution model to a window of touchpoints.

    Args:
        model: attribution model (enum or its string value)
        touchpoints: every touchpoint of the window; for linear models this
            must be the orders' full window set, not a channel-filtered subset
    Returns:
        contributing touchpoints with weights in (0, 1], in input order
    Raises:
        ConfigurationError: unknown model
    """
    resolved = coerce_model(model)

    if resolved is AttributionModel.FIRST_CLICK:
        return [WeightedTouchpoint(tp, 1.0) for tp in touchpoints if tp.is_first_event_overall]
    if resolved is AttributionModel.LAST_CLICK:
        return [WeightedTouchpoint(tp, 1.0) for tp in touchpoints if tp.is_last_event_overall]
    if resolved is AttributionModel.LAST_PAID_CLICK:
        return [WeightedTouchpoint(tp, 1.0) for tp in touchpoints if _is_last_paid_click_credit(tp)]
    if resolved is AttributionModel.LINEAR_ALL:
        return _select_linear(touchpoints, paid_only=False)
    if resolved is AttributionModel.LINEAR_PAID:
        return _select_linear(touchpoints, paid_only=True)
    raise ConfigurationError(f"Unknown attribution model: {model}")  # pragma: no cover


__all__ = ["coerce_model", "linear_weights", "select_touchpoints"]
