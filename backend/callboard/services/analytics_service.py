"""
Analytics report assembly: date range resolution, the fetch/fold pipeline and
period-over-period comparison for one location.
"""
import logging
import math
from datetime import date, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException, status

from callboard.config import settings
from callboard.models import Location
from callboard.schemas.analytics import (
    AnalyticsResponse,
    CallType,
    Granularity,
    LocationSummary,
    MetricDeltas,
    TimeRange,
)
from callboard.services.call_repository import CallRepository
from callboard.services.metrics_aggregator import (
    aggregate_range,
    fold,
    granularity_for,
    init_buckets,
    merge_daily_rows,
    percent_delta,
)
from callboard.utils.timezone_helpers import local_range_to_utc

logger = logging.getLogger(__name__)


def resolve_date_range(
    time_range: TimeRange,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """Explicit start/end win over the preset; both must be given together."""
    if start_date or end_date:
        if not (start_date and end_date):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="start_date and end_date must be provided together",
            )
        if start_date > end_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="start_date must not be after end_date",
            )
        return start_date, end_date

    today = today or date.today()
    if time_range == TimeRange.TODAY:
        return today, today
    if time_range == TimeRange.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if time_range == TimeRange.WEEK:
        return today - timedelta(days=7), today
    if time_range == TimeRange.MONTH:
        return today - timedelta(days=30), today
    return settings.ANALYTICS_EARLIEST_DATE, today


def previous_period(start_date: date, end_date: date) -> Tuple[date, date]:
    """The equally long window ending the day before start_date."""
    days = math.ceil((end_date - start_date).total_seconds() / 86400)
    return start_date - timedelta(days=days + 1), start_date - timedelta(days=1)


def location_time_zone(location: Location) -> str:
    return location.time_zone or settings.DEFAULT_TIME_ZONE


def location_summary(location: Location) -> LocationSummary:
    return LocationSummary(
        location_id=location.location_id,
        name=location.name,
        account_id=location.account_id,
        time_zone=location_time_zone(location),
        operating_hours_json=location.operating_hours_json,
    )


async def build_analytics(
    repo: CallRepository,
    location: Location,
    start_date: date,
    end_date: date,
    call_type: CallType = CallType.ALL,
) -> AnalyticsResponse:
    """
    Buckets, totals and comparison for one location.

    Unfiltered multi-day views read the daily metrics view. Single days and
    category-filtered views fold raw calls: resolve the call set, fetch related
    orders/reservations concurrently, then fold.
    """
    tz = location_time_zone(location)
    granularity = granularity_for(start_date, end_date)
    buckets = init_buckets(granularity, start_date, end_date)
    start_utc, end_utc = local_range_to_utc(start_date, end_date, tz)

    if granularity == Granularity.DAY and call_type == CallType.ALL:
        rows = repo.fetch_daily_rows(location.location_id, start_date, end_date)
        merge_daily_rows(buckets, rows)
    else:
        calls = repo.fetch_calls(location.location_id, start_utc, end_utc)
        events = await repo.attach_related(calls, call_type)
        fold(buckets, events, tz, granularity)

    totals = aggregate_range(buckets)

    prev_start, prev_end = previous_period(start_date, end_date)
    prev_buckets = init_buckets(Granularity.DAY, prev_start, prev_end)
    merge_daily_rows(prev_buckets, repo.fetch_daily_rows_or_empty(location.location_id, prev_start, prev_end))
    previous = aggregate_range(prev_buckets)

    deltas = MetricDeltas(
        calls=percent_delta(totals.total_calls, previous.total_calls),
        orders=percent_delta(totals.orders_count, previous.orders_count),
        reservations=percent_delta(totals.reservations_count, previous.reservations_count),
        revenue=percent_delta(totals.total_revenue_combined, previous.total_revenue_combined),
    )

    logger.info(
        "Analytics for location %s %s..%s (%s, %s): %d buckets, %d calls",
        location.location_id, start_date, end_date, granularity.value, call_type.value,
        len(buckets), totals.total_calls,
    )

    return AnalyticsResponse(
        location=location_summary(location),
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
        call_type=call_type,
        buckets=list(buckets.values()),
        totals=totals,
        previous_start_date=prev_start,
        previous_end_date=prev_end,
        previous_totals=previous,
        deltas=deltas,
        total_call_time_seconds=repo.total_call_time_seconds(location.location_id, start_utc, end_utc),
        labour_saved_hours=totals.minutes_saved / 60,
    )
