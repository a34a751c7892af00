"""
Call metrics aggregation.

Folds call events for a single location into hour-of-day buckets (single-day
ranges) or calendar-day buckets (anything longer), in the location's own time
zone. Pure functions over in-memory data; fetching lives in
callboard.services.call_repository.

All money is integer cents end to end. Reservation revenue is an estimate
(guests x per-head rate) and is kept apart from measured order revenue; both
roll into ``total_revenue_combined``.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from callboard.config import settings
from callboard.schemas.analytics import (
    CallEvent,
    CallType,
    Delta,
    Granularity,
    MetricsBucket,
    PeriodTotals,
)
from callboard.utils.timezone_helpers import utc_to_local

logger = logging.getLogger(__name__)

ORDER = "order"
RESERVATION = "reservation"

Buckets = Dict[str, MetricsBucket]
Classifier = Callable[[CallEvent], FrozenSet[str]]

# Fields summed straight across buckets / daily rows
_INT_FIELDS = (
    "total_calls",
    "completed_calls",
    "orders_count",
    "reservations_count",
    "total_revenue_orders",
    "total_revenue_res_estimate",
    "total_revenue_combined",
    "upsells_count",
    "total_upsell_value",
)


def granularity_for(start_date: date, end_date: date) -> Granularity:
    return Granularity.HOUR if start_date == end_date else Granularity.DAY


def bucket_key(timestamp_utc: datetime, time_zone: Optional[str], granularity: Granularity) -> str:
    """
    Bucket key for a UTC timestamp, in the given zone.

    Hour granularity gives the local hour as "HH:00"; day granularity gives the
    local ISO date.
    """
    local = utc_to_local(timestamp_utc, time_zone)
    if granularity == Granularity.HOUR:
        return f"{local.hour:02d}:00"
    return local.date().isoformat()


def init_buckets(granularity: Granularity, range_start: date, range_end: date) -> Buckets:
    """Zeroed buckets covering the whole range, in chronological order."""
    if granularity == Granularity.HOUR:
        keys = [f"{h:02d}:00" for h in range(24)]
    else:
        keys = []
        day = range_start
        while day <= range_end:
            keys.append(day.isoformat())
            day += timedelta(days=1)
    return {key: MetricsBucket(key=key) for key in keys}


def classify_event(event: CallEvent) -> FrozenSet[str]:
    """Which facts are attached to a call: order, reservation, both or neither."""
    kinds = set()
    if event.orders:
        kinds.add(ORDER)
    if event.reservations:
        kinds.add(RESERVATION)
    return frozenset(kinds)


def matches_call_type(event: CallEvent, call_type: CallType, classifier: Classifier = classify_event) -> bool:
    if call_type == CallType.ORDERS:
        return ORDER in classifier(event)
    if call_type == CallType.RESERVATIONS:
        return RESERVATION in classifier(event)
    return True


def reservation_estimate(guest_count: Optional[int]) -> int:
    """Estimated reservation revenue in cents. Missing or zero guests count as the default party size."""
    guests = guest_count or settings.DEFAULT_RESERVATION_GUEST_COUNT
    return guests * settings.RESERVATION_REVENUE_PER_GUEST_CENTS


def fold(
    buckets: Buckets,
    events: Iterable[CallEvent],
    time_zone: Optional[str],
    granularity: Granularity,
    classifier: Classifier = classify_event,
) -> Buckets:
    """
    Add each event to its bucket. Only the first linked order/reservation of a
    call is counted. Events landing outside the pre-built buckets are dropped.
    """
    for event in events:
        key = bucket_key(event.started_at_utc, time_zone, granularity)
        bucket = buckets.get(key)
        if bucket is None:
            logger.debug("Call %s falls outside requested range (bucket %s)", event.call_id, key)
            continue

        bucket.total_calls += 1
        kinds = classifier(event)

        if ORDER in kinds:
            revenue = int(event.orders[0].total or 0)
            bucket.orders_count += 1
            bucket.total_revenue_orders += revenue
            bucket.total_revenue_combined += revenue

        if RESERVATION in kinds:
            estimate = reservation_estimate(event.reservations[0].guest_count)
            bucket.reservations_count += 1
            bucket.total_revenue_res_estimate += estimate
            bucket.total_revenue_combined += estimate

    return buckets


def merge_daily_rows(buckets: Buckets, rows: Iterable) -> Buckets:
    """
    Fold pre-aggregated mv_metrics_daily rows into day buckets.

    Each merged row marks its bucket as carrying a per-day average call
    duration, which aggregate_range averages over.
    """
    for row in rows:
        key = row.date.isoformat()
        bucket = buckets.get(key)
        if bucket is None:
            continue
        for field in _INT_FIELDS:
            setattr(bucket, field, getattr(bucket, field) + int(getattr(row, field, None) or 0))
        bucket.minutes_saved += float(row.minutes_saved or 0)
        bucket.avg_call_duration_seconds = float(row.avg_call_duration_seconds or 0)
    return buckets


def aggregate_range(buckets: Buckets) -> PeriodTotals:
    """
    Sum every bucket into period totals.

    avg_call_duration_seconds is the mean of the per-day averages, not a
    call-weighted mean: the daily view does not expose per-day call counts
    for the duration average.
    """
    totals = PeriodTotals()
    duration_sum = 0.0
    for bucket in buckets.values():
        for field in _INT_FIELDS:
            setattr(totals, field, getattr(totals, field) + getattr(bucket, field))
        totals.minutes_saved += bucket.minutes_saved
        if bucket.avg_call_duration_seconds is not None:
            duration_sum += bucket.avg_call_duration_seconds
            totals.days_count += 1

    if totals.days_count > 0:
        totals.avg_call_duration_seconds = duration_sum / totals.days_count
    return totals


def percent_delta(current: float, previous: float) -> Optional[Delta]:
    """Percentage change from previous to current; None when previous is zero."""
    if not previous:
        return None
    percent = 100 * (current - previous) / previous
    return Delta(percent=percent, positive=percent >= 0, value=f"{abs(percent):.1f}%")
