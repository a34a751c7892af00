"""
Call Log Schemas
"""
from typing import Optional, List, Any
from datetime import datetime
from pydantic import BaseModel, Field


class CallLogItem(BaseModel):
    """Row in the call log table"""
    id: str
    started_at: datetime
    type: str  # order | reservation | catering | inquiry
    call_health: str  # success | warning | error
    from_number: str = Field(..., serialization_alias="from")
    duration: str
    summary: str


class CallLogList(BaseModel):
    location_id: int
    calls: List[CallLogItem]
    total: int


class OrderDetail(BaseModel):
    order_id: int
    total: Optional[int] = None
    items: Optional[Any] = None

    class Config:
        from_attributes = True


class ReservationDetail(BaseModel):
    reservation_id: int
    guest_count: Optional[int] = None
    reservation_time: Optional[datetime] = None
    customer_name: Optional[str] = None

    class Config:
        from_attributes = True


class UpsellDetail(BaseModel):
    upsell_id: int
    order_id: int
    item_name: Optional[str] = None
    value: Optional[int] = None

    class Config:
        from_attributes = True


class ComplaintDetail(BaseModel):
    complaint_id: int
    category: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


class CallDetail(BaseModel):
    """Full record of one call with everything linked to it"""
    call_id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_seconds: int = 0
    from_number: Optional[str] = None
    certus_number: Optional[str] = None
    status: Optional[str] = None
    recording_url: Optional[str] = None
    transcript_md: Optional[str] = None
    summary_md: Optional[str] = None
    call_summary: Optional[str] = None
    call_summary_short: Optional[str] = None
    pathway_tags_formatted: Optional[str] = None
    call_type: str  # Order | Reservation | General Inquiry
    call_health: str
    orders: List[OrderDetail] = []
    reservations: List[ReservationDetail] = []
    upsells: List[UpsellDetail] = []
    complaints: List[ComplaintDetail] = []
