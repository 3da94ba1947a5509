from datetime import date, datetime, timedelta, timezone

import pytest

from attribution_backend.exceptions import InvalidDateRangeError
from attribution_backend.utils.channels import is_ad_spend_channel, is_managed_ad_channel, is_non_ad_spend_channel
from attribution_backend.utils.metrics import ctr_pct, guarded_ratio
from attribution_backend.utils.time import (
    format_elapsed,
    in_window,
    make_end_date_exclusive,
    parse_date,
    should_use_hourly_aggregation,
    validate_date_range,
    window_bounds,
)


def test_parse_date_accepts_strings_dates_and_datetimes():
    assert parse_date("2024-03-05") == date(2024, 3, 5)
    assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)
    assert parse_date(datetime(2024, 3, 5, 17, 30)) == date(2024, 3, 5)
    with pytest.raises(InvalidDateRangeError):
        parse_date("05/03/2024")


def test_validate_date_range_limits():
    validate_date_range(date(2024, 1, 1), date(2024, 1, 1))
    validate_date_range(date(2024, 1, 1), date(2024, 1, 10), max_days=10)
    with pytest.raises(InvalidDateRangeError):
        validate_date_range(date(2024, 1, 1), date(2024, 1, 11), max_days=10)
    with pytest.raises(InvalidDateRangeError):
        validate_date_range(date(2024, 1, 2), date(2024, 1, 1))


def test_window_helpers():
    assert make_end_date_exclusive(date(2024, 2, 29)) == date(2024, 3, 1)
    start, end = window_bounds(date(2024, 1, 1), date(2024, 1, 31))
    assert (start, end) == (datetime(2024, 1, 1), datetime(2024, 2, 1))
    assert in_window(datetime(2024, 1, 31, 23, 59, 59), start, end)
    assert not in_window(datetime(2024, 2, 1), start, end)
    # aware timestamps are compared in UTC
    assert in_window(datetime(2024, 2, 1, 0, 30, tzinfo=timezone(timedelta(hours=2))), start, end)
    assert should_use_hourly_aggregation(date(2024, 1, 1), date(2024, 1, 1))
    assert not should_use_hourly_aggregation(date(2024, 1, 1), date(2024, 1, 2))


def test_format_elapsed():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert format_elapsed(start, start + timedelta(milliseconds=250)) == "250ms"
    assert format_elapsed(start, start + timedelta(seconds=2.5)) == "2.50s"


def test_channel_classification_is_case_insensitive():
    assert is_ad_spend_channel("Meta-Ads")
    assert is_non_ad_spend_channel("organic")
    assert is_managed_ad_channel("GOOGLE-ADS")
    assert not is_managed_ad_channel("taboola")


def test_guarded_ratios():
    assert guarded_ratio(10, 0) == 0.0
    assert guarded_ratio(10, -5) == 0.0
    assert guarded_ratio(10, None) == 0.0
    assert guarded_ratio(10, 4) == 2.5
    assert ctr_pct(3, 0) == 0.0
    assert ctr_pct(3, 200) == pytest.approx(1.5)
