"""Time utilities (UTC now, elapsed formatting, request date windows)."""
from __future__ import annotations
from datetime import date, datetime, time, timezone, timedelta

from attribution_backend.config import ANALYTICS_SETTINGS
from attribution_backend.exceptions import InvalidDateRangeError

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def format_elapsed(start: datetime, end: datetime | None = None) -> str:
    end_ts = end or utc_now()
    delta: timedelta = end_ts - start
    ms = int(delta.total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms/1000:.2f}s"
    return f"{delta.total_seconds()/60:.2f}m"

def parse_date(value: str | date) -> date:
    """Parse a YYYY-MM-DD string (datetimes are truncated to their date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDateRangeError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc

def validate_date_range(start_date: date, end_date: date, *, max_days: int | None = None) -> None:
    """Reject inverted ranges and ranges longer than the configured maximum."""
    if start_date > end_date:
        raise InvalidDateRangeError("Start date must not be after end date")
    limit = int(max_days if max_days is not None else ANALYTICS_SETTINGS["max_date_range_days"])
    span_days = (end_date - start_date).days + 1
    if span_days > limit:
        raise InvalidDateRangeError(f"Date range spans {span_days} days, maximum is {limit}")

def make_end_date_exclusive(end_date: date) -> date:
    """Caller end dates are inclusive; queries compare with `<` so add a day."""
    return end_date + timedelta(days=1)

def window_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Half-open [start, end + 1 day) window as naive datetimes."""
    return (
        datetime.combine(start_date, time.min),
        datetime.combine(make_end_date_exclusive(end_date), time.min),
    )

def in_window(ts: datetime, start: datetime, end_exclusive: datetime) -> bool:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return start <= ts < end_exclusive

def should_use_hourly_aggregation(start_date: date, end_date: date) -> bool:
    return (end_date - start_date).days == 0

__all__ = [
    "utc_now",
    "format_elapsed",
    "parse_date",
    "validate_date_range",
    "make_end_date_exclusive",
    "window_bounds",
    "in_window",
    "should_use_hourly_aggregation",
]
