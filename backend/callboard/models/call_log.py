"""
Call records written by the voice assistant. Read-only from this service.
"""
from sqlalchemy import Column, String, Integer, BigInteger, DateTime, Text, ForeignKey, Index, JSON
from datetime import datetime

from callboard.database import Base


class CallLog(Base):
    __tablename__ = "call_logs"

    call_id = Column(String, primary_key=True)
    location_id = Column(Integer, ForeignKey("locations.location_id"), nullable=False)
    started_at_utc = Column(DateTime(timezone=True), nullable=False)
    ended_at_utc = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    corrected_duration_seconds = Column(Integer, nullable=True)
    status = Column(String, nullable=True)  # completed | in_progress | failed | error
    from_number = Column(String, nullable=True)
    certus_number = Column(String, nullable=True)
    recording_url = Column(String, nullable=True)
    transcript_md = Column(Text, nullable=True)
    summary_md = Column(Text, nullable=True)
    call_summary = Column(Text, nullable=True)
    call_summary_short = Column(String, nullable=True)
    pathway_tags_formatted = Column(String, nullable=True)

    __table_args__ = (
        Index("idx_call_logs_location_started", "location_id", "started_at_utc"),
    )

    def __repr__(self):
        return f"<CallLog {self.call_id} @ {self.started_at_utc}>"


class OrderLog(Base):
    __tablename__ = "order_logs"

    order_id = Column(Integer, primary_key=True, autoincrement=True)
    call_id = Column(String, ForeignKey("call_logs.call_id", ondelete="CASCADE"), nullable=False, index=True)
    total = Column(BigInteger, nullable=True)  # cents
    items = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Reservation(Base):
    __tablename__ = "reservations"

    reservation_id = Column(Integer, primary_key=True, autoincrement=True)
    call_id = Column(String, ForeignKey("call_logs.call_id", ondelete="CASCADE"), nullable=False, index=True)
    guest_count = Column(Integer, nullable=True)
    reservation_time = Column(DateTime(timezone=True), nullable=True)
    customer_name = Column(String, nullable=True)


class Upsell(Base):
    __tablename__ = "upsells"

    upsell_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("order_logs.order_id", ondelete="CASCADE"), nullable=False, index=True)
    item_name = Column(String, nullable=True)
    value = Column(BigInteger, nullable=True)  # cents


class Complaint(Base):
    __tablename__ = "complaints"

    complaint_id = Column(Integer, primary_key=True, autoincrement=True)
    call_id = Column(String, ForeignKey("call_logs.call_id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String, nullable=True)
    description = Column(Text, nullable=True)
