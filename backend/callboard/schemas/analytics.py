"""
Analytics Schemas

Typed records for the metrics pipeline. Rows coming out of the database are
normalized into these at the fetch boundary so the aggregator never sees
loosely shaped data.
"""
import enum
from typing import Any, Optional, List
from datetime import date, datetime
from pydantic import BaseModel


class Granularity(str, enum.Enum):
    HOUR = "hour"
    DAY = "day"


class CallType(str, enum.Enum):
    """Category filter for the analytics view"""
    ALL = "all"
    ORDERS = "orders"
    RESERVATIONS = "reservations"


class TimeRange(str, enum.Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class OrderFact(BaseModel):
    call_id: str
    total: Optional[int] = None  # cents


class ReservationFact(BaseModel):
    call_id: str
    guest_count: Optional[int] = None


class CallEvent(BaseModel):
    """One call with whatever orders/reservations are linked to it"""
    call_id: str
    location_id: int
    started_at_utc: datetime
    corrected_duration_seconds: Optional[int] = None
    orders: List[OrderFact] = []
    reservations: List[ReservationFact] = []


class MetricsBucket(BaseModel):
    """One hour-of-day or calendar-day accumulator. Money in cents."""
    key: str
    total_calls: int = 0
    orders_count: int = 0
    reservations_count: int = 0
    total_revenue_orders: int = 0
    total_revenue_res_estimate: int = 0
    total_revenue_combined: int = 0
    upsells_count: int = 0
    completed_calls: int = 0
    total_upsell_value: int = 0
    minutes_saved: float = 0.0
    avg_call_duration_seconds: Optional[float] = None


class PeriodTotals(BaseModel):
    total_calls: int = 0
    completed_calls: int = 0
    orders_count: int = 0
    reservations_count: int = 0
    total_revenue_orders: int = 0
    total_revenue_res_estimate: int = 0
    total_revenue_combined: int = 0
    upsells_count: int = 0
    total_upsell_value: int = 0
    minutes_saved: float = 0.0
    avg_call_duration_seconds: float = 0.0
    days_count: int = 0


class Delta(BaseModel):
    """Period-over-period change"""
    percent: float
    positive: bool
    value: str  # e.g. "20.0%", always unsigned


class MetricDeltas(BaseModel):
    calls: Optional[Delta] = None
    orders: Optional[Delta] = None
    reservations: Optional[Delta] = None
    revenue: Optional[Delta] = None


class LocationSummary(BaseModel):
    location_id: int
    name: str
    account_id: int
    time_zone: str
    operating_hours_json: Optional[Any] = None


class AnalyticsResponse(BaseModel):
    location: LocationSummary
    start_date: date
    end_date: date
    granularity: Granularity
    call_type: CallType
    buckets: List[MetricsBucket]
    totals: PeriodTotals
    previous_start_date: date
    previous_end_date: date
    previous_totals: PeriodTotals
    deltas: MetricDeltas
    total_call_time_seconds: int
    labour_saved_hours: float
