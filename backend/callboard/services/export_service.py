"""
CSV export of daily metrics rows.
"""
import csv
import io
from typing import Iterable, Optional

from callboard.models import MetricsDaily

CSV_HEADER = [
    "Date",
    "Total Calls",
    "Completed Calls",
    "Orders Count",
    "Order Revenue ($)",
    "Reservations Count",
    "Reservation Revenue ($)",
    "Total Revenue ($)",
    "Upsells Count",
    "Upsell Value ($)",
    "Minutes Saved",
    "Avg Call Duration (sec)",
]


def dollars(cents: Optional[int]) -> str:
    return f"{(cents or 0) / 100:.2f}"


def two_places(value: Optional[float]) -> str:
    return f"{(value or 0):.2f}"


def build_metrics_csv(rows: Iterable[MetricsDaily]) -> str:
    """One line per daily row, money rendered in dollars."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)

    for row in rows:
        writer.writerow([
            row.date.isoformat(),
            row.total_calls or 0,
            row.completed_calls or 0,
            row.orders_count or 0,
            dollars(row.total_revenue_orders),
            row.reservations_count or 0,
            dollars(row.total_revenue_res_estimate),
            dollars(row.total_revenue_combined),
            row.upsells_count or 0,
            dollars(row.total_upsell_value),
            two_places(row.minutes_saved),
            two_places(row.avg_call_duration_seconds),
        ])

    return output.getvalue()


def export_filename(location_id: int, start_date, end_date) -> str:
    return f"call-metrics-{location_id}-{start_date.isoformat()}-to-{end_date.isoformat()}.csv"
