"""
Tests - Analytics pipeline against a real database
"""
import asyncio
from datetime import date, datetime, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from callboard.models import CallLog, MetricsDaily, OrderLog, Reservation
from callboard.schemas.analytics import CallType, Granularity, TimeRange
from callboard.services.analytics_service import build_analytics, previous_period, resolve_date_range
from callboard.services.call_repository import CallRepository


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def add_call(db, call_id, location_id, started_at, duration=60, order_total=None, guests=None, status="completed"):
    db.add(CallLog(
        call_id=call_id,
        location_id=location_id,
        started_at_utc=started_at,
        duration_seconds=duration,
        corrected_duration_seconds=duration,
        status=status,
    ))
    db.flush()
    if order_total is not None:
        db.add(OrderLog(call_id=call_id, total=order_total))
    if guests is not None:
        db.add(Reservation(call_id=call_id, guest_count=guests))


def add_daily(db, location_id, day, **values):
    db.add(MetricsDaily(location_id=location_id, date=day, **values))


@pytest.fixture
def repo(session_factory):
    return CallRepository(session_factory, reason="analytics tests")


@pytest.fixture
def june_calls(db, seed):
    """Calls around 2024-06-01 for the New York location"""
    add_call(db, "c-evening-order", 10, utc(2024, 6, 1, 23, 30), duration=120, order_total=1500)
    add_call(db, "c-morning-res", 10, utc(2024, 6, 1, 14, 0), duration=90, guests=3)
    add_call(db, "c-inquiry", 10, utc(2024, 6, 1, 15, 10), duration=30)
    # 23:00 on May 31 local time
    add_call(db, "c-before", 10, utc(2024, 6, 1, 3, 0), order_total=999)
    # 01:00 on June 2 local time
    add_call(db, "c-after", 10, utc(2024, 6, 2, 5, 0), order_total=999)
    # Same instant at another location
    add_call(db, "c-chicago", 11, utc(2024, 6, 1, 23, 30), order_total=4000)
    add_daily(db, 10, date(2024, 5, 31), total_calls=6, orders_count=2, total_revenue_combined=8250)
    db.commit()
    return seed


class TestResolveDateRange:
    """Tests for preset and custom ranges"""

    today = date(2024, 6, 15)

    @pytest.mark.parametrize("time_range,expected", [
        (TimeRange.TODAY, (date(2024, 6, 15), date(2024, 6, 15))),
        (TimeRange.YESTERDAY, (date(2024, 6, 14), date(2024, 6, 14))),
        (TimeRange.WEEK, (date(2024, 6, 8), date(2024, 6, 15))),
        (TimeRange.MONTH, (date(2024, 5, 16), date(2024, 6, 15))),
        (TimeRange.ALL, (date(2020, 1, 1), date(2024, 6, 15))),
    ])
    def test_presets(self, time_range, expected):
        assert resolve_date_range(time_range, today=self.today) == expected

    def test_custom_range_overrides_preset(self):
        result = resolve_date_range(TimeRange.TODAY, date(2024, 1, 1), date(2024, 1, 3), today=self.today)

        assert result == (date(2024, 1, 1), date(2024, 1, 3))

    def test_incomplete_custom_range(self):
        with pytest.raises(HTTPException) as exc:
            resolve_date_range(TimeRange.WEEK, start_date=date(2024, 1, 1))

        assert exc.value.status_code == 400

    def test_reversed_custom_range(self):
        with pytest.raises(HTTPException) as exc:
            resolve_date_range(TimeRange.WEEK, date(2024, 1, 5), date(2024, 1, 1))

        assert exc.value.status_code == 400


class TestPreviousPeriod:
    """Tests for the comparison window"""

    def test_single_day(self):
        assert previous_period(date(2024, 6, 1), date(2024, 6, 1)) == (date(2024, 5, 31), date(2024, 5, 31))

    def test_week(self):
        assert previous_period(date(2024, 6, 8), date(2024, 6, 15)) == (date(2024, 5, 31), date(2024, 6, 7))


class TestBuildAnalytics:
    """Tests for the fetch, fan-out and fold pipeline"""

    def test_single_day_is_hourly_in_location_zone(self, june_calls, repo):
        result = asyncio.run(build_analytics(repo, june_calls.new_york, date(2024, 6, 1), date(2024, 6, 1)))

        assert result.granularity == Granularity.HOUR
        assert len(result.buckets) == 24
        by_key = {b.key: b for b in result.buckets}
        assert by_key["19:00"].orders_count == 1
        assert by_key["19:00"].total_revenue_orders == 1500
        assert by_key["10:00"].reservations_count == 1
        assert by_key["10:00"].total_revenue_res_estimate == 15000
        assert by_key["11:00"].total_calls == 1
        assert result.totals.total_calls == 3
        assert result.totals.total_revenue_combined == 16500

    def test_call_time_and_labour_saved(self, june_calls, repo):
        result = asyncio.run(build_analytics(repo, june_calls.new_york, date(2024, 6, 1), date(2024, 6, 1)))

        assert result.total_call_time_seconds == 240
        assert result.labour_saved_hours == 0.0

    def test_previous_period_comes_from_daily_view(self, june_calls, repo):
        result = asyncio.run(build_analytics(repo, june_calls.new_york, date(2024, 6, 1), date(2024, 6, 1)))

        assert result.previous_start_date == date(2024, 5, 31)
        assert result.previous_totals.total_calls == 6
        assert result.deltas.calls.percent == -50.0
        assert result.deltas.calls.positive is False
        assert result.deltas.reservations is None

    def test_orders_filter(self, june_calls, repo):
        result = asyncio.run(build_analytics(
            repo, june_calls.new_york, date(2024, 6, 1), date(2024, 6, 2), CallType.ORDERS,
        ))

        assert result.granularity == Granularity.DAY
        assert [b.key for b in result.buckets] == ["2024-06-01", "2024-06-02"]
        assert result.totals.total_calls == 2
        assert result.totals.orders_count == 2
        assert result.totals.reservations_count == 0

    def test_reservations_filter(self, june_calls, repo):
        result = asyncio.run(build_analytics(
            repo, june_calls.new_york, date(2024, 6, 1), date(2024, 6, 1), CallType.RESERVATIONS,
        ))

        assert result.totals.total_calls == 1
        assert result.totals.orders_count == 0
        assert result.totals.total_revenue_res_estimate == 15000

    def test_unfiltered_multi_day_reads_daily_view(self, db, seed, repo):
        add_daily(db, 10, date(2024, 6, 1), total_calls=10, orders_count=4, total_revenue_orders=5000,
                  total_revenue_combined=5000, minutes_saved=30.0, avg_call_duration_seconds=100.0)
        add_daily(db, 10, date(2024, 6, 3), total_calls=2, avg_call_duration_seconds=50.0)
        add_daily(db, 11, date(2024, 6, 2), total_calls=99)
        db.commit()

        result = asyncio.run(build_analytics(repo, seed.new_york, date(2024, 6, 1), date(2024, 6, 7)))

        assert len(result.buckets) == 7
        assert result.totals.total_calls == 12
        assert result.totals.orders_count == 4
        assert result.totals.days_count == 2
        assert result.totals.avg_call_duration_seconds == 75.0
        assert result.labour_saved_hours == 0.5
        assert result.buckets[1].total_calls == 0

    def test_empty_location(self, seed, repo):
        result = asyncio.run(build_analytics(repo, seed.chicago, date(2024, 6, 1), date(2024, 6, 7)))

        assert len(result.buckets) == 7
        assert result.totals.total_calls == 0
        assert result.deltas.calls is None


class TestCallRepository:
    """Tests for the privileged reader"""

    def test_fetch_calls_is_scoped_to_location(self, june_calls, repo):
        calls = repo.fetch_calls(11, utc(2024, 6, 1), utc(2024, 6, 3))

        assert [c.call_id for c in calls] == ["c-chicago"]

    def test_secondary_lookup_failure_degrades_to_empty(self, june_calls, repo, monkeypatch):
        def broken(call_ids):
            raise SQLAlchemyError("orders unavailable")

        monkeypatch.setattr(repo, "fetch_orders", broken)
        calls = repo.fetch_calls(10, utc(2024, 6, 1, 4), utc(2024, 6, 2, 4))

        events = asyncio.run(repo.attach_related(calls))

        assert len(events) == 3
        assert all(e.orders == [] for e in events)
        assert sum(len(e.reservations) for e in events) == 1

    def test_filter_skips_unneeded_lookup(self, june_calls, repo, monkeypatch):
        def unexpected(call_ids):
            raise AssertionError("reservations should not be fetched")

        monkeypatch.setattr(repo, "fetch_reservations", unexpected)
        calls = repo.fetch_calls(10, utc(2024, 6, 1, 4), utc(2024, 6, 2, 4))

        events = asyncio.run(repo.attach_related(calls, CallType.ORDERS))

        assert [e.call_id for e in events] == ["c-evening-order"]
