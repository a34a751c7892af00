"""
Unit Tests - CSV export
"""
import csv
import io
from datetime import date
from types import SimpleNamespace

from callboard.services.export_service import CSV_HEADER, build_metrics_csv, export_filename


def row(day, **values):
    fields = dict(
        date=day,
        total_calls=None,
        completed_calls=None,
        orders_count=None,
        reservations_count=None,
        total_revenue_orders=None,
        total_revenue_res_estimate=None,
        total_revenue_combined=None,
        upsells_count=None,
        total_upsell_value=None,
        minutes_saved=None,
        avg_call_duration_seconds=None,
    )
    fields.update(values)
    return SimpleNamespace(**fields)


def parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestMetricsCsv:
    """Tests for the daily metrics CSV"""

    def test_header_only_for_no_rows(self):
        assert parse(build_metrics_csv([])) == [CSV_HEADER]

    def test_money_in_dollars(self):
        lines = parse(build_metrics_csv([
            row(date(2024, 6, 1), total_calls=12, completed_calls=10, orders_count=3,
                total_revenue_orders=4250, reservations_count=1, total_revenue_res_estimate=10000,
                total_revenue_combined=14250, upsells_count=2, total_upsell_value=599,
                minutes_saved=37.5, avg_call_duration_seconds=112.3333),
        ]))

        assert lines[1] == [
            "2024-06-01", "12", "10", "3", "42.50", "1", "100.00", "142.50", "2", "5.99", "37.50", "112.33",
        ]

    def test_missing_values_are_zero(self):
        lines = parse(build_metrics_csv([row(date(2024, 6, 2))]))

        assert lines[1] == ["2024-06-02", "0", "0", "0", "0.00", "0", "0.00", "0.00", "0", "0.00", "0.00", "0.00"]

    def test_filename(self):
        assert export_filename(10, date(2024, 6, 1), date(2024, 6, 7)) == "call-metrics-10-2024-06-01-to-2024-06-07.csv"
