"""
Daily call metrics per location.

Mapped onto the mv_metrics_daily materialized view, which is refreshed outside
this service. Never written by the application.
"""
from sqlalchemy import Column, Integer, BigInteger, Float, Date, ForeignKey

from callboard.database import Base


class MetricsDaily(Base):
    __tablename__ = "mv_metrics_daily"

    location_id = Column(Integer, ForeignKey("locations.location_id"), primary_key=True)
    date = Column(Date, primary_key=True)

    total_calls = Column(Integer, nullable=True)
    completed_calls = Column(Integer, nullable=True)
    orders_count = Column(Integer, nullable=True)
    reservations_count = Column(Integer, nullable=True)

    # All money in cents
    total_revenue_orders = Column(BigInteger, nullable=True)
    total_revenue_res_estimate = Column(BigInteger, nullable=True)
    total_revenue_combined = Column(BigInteger, nullable=True)
    upsells_count = Column(Integer, nullable=True)
    total_upsell_value = Column(BigInteger, nullable=True)

    minutes_saved = Column(Float, nullable=True)
    avg_call_duration_seconds = Column(Float, nullable=True)

    def __repr__(self):
        return f"<MetricsDaily {self.location_id} {self.date}>"
