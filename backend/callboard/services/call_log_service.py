"""
Call log listing and call detail.
"""
import asyncio
import re
from datetime import date
from typing import Optional, Set

from fastapi import HTTPException, status

from callboard.config import settings
from callboard.models import CallLog, Location
from callboard.schemas.call_log import (
    CallDetail,
    CallLogItem,
    CallLogList,
    ComplaintDetail,
    OrderDetail,
    ReservationDetail,
    UpsellDetail,
)
from callboard.services.analytics_service import location_time_zone
from callboard.services.call_repository import CallRepository
from callboard.utils.timezone_helpers import local_range_to_utc


def call_health(call_status: Optional[str]) -> str:
    if call_status in ("failed", "error"):
        return "error"
    if call_status == "in_progress":
        return "warning"
    return "success"


def format_phone_number(number: Optional[str]) -> str:
    """US numbers as (AAA) BBB-CCCC; anything else unchanged."""
    if not number:
        return "Unknown"
    digits = re.sub(r"\D", "", number)
    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return number


def format_duration(seconds: Optional[int]) -> str:
    seconds = seconds or 0
    return f"{seconds // 60}m {seconds % 60}s"


def display_type(call: CallLog, order_call_ids: Set[str], reservation_call_ids: Set[str]) -> str:
    if call.call_id in order_call_ids:
        return "order"
    if call.call_id in reservation_call_ids:
        return "reservation"
    if call.pathway_tags_formatted and "catering" in call.pathway_tags_formatted.lower():
        return "catering"
    return "inquiry"


def summary_text(call: CallLog) -> str:
    if call.call_summary_short:
        return call.call_summary_short
    if call.summary_md:
        return call.summary_md[:100]
    return "No summary"


async def list_calls(repo: CallRepository, location: Location, start_date: date, end_date: date) -> CallLogList:
    """Most recent calls in the range, newest first, with their type resolved from linked records."""
    start_utc, end_utc = local_range_to_utc(start_date, end_date, location_time_zone(location))
    calls = repo.fetch_recent_calls(location.location_id, start_utc, end_utc, settings.CALL_LOG_PAGE_SIZE)

    call_ids = [c.call_id for c in calls]
    orders, reservations = await asyncio.gather(
        asyncio.to_thread(repo.fetch_orders, call_ids),
        asyncio.to_thread(repo.fetch_reservations, call_ids),
    )
    order_call_ids = {o.call_id for o in orders}
    reservation_call_ids = {r.call_id for r in reservations}

    items = [
        CallLogItem(
            id=call.call_id,
            started_at=call.started_at_utc,
            type=display_type(call, order_call_ids, reservation_call_ids),
            call_health=call_health(call.status),
            from_number=format_phone_number(call.from_number),
            duration=format_duration(call.duration_seconds),
            summary=summary_text(call),
        )
        for call in calls
    ]
    return CallLogList(location_id=location.location_id, calls=items, total=len(items))


async def get_call_detail(repo: CallRepository, location: Location, call_id: str) -> CallDetail:
    call = repo.fetch_call(location.location_id, call_id)
    if call is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")

    facts = await repo.fetch_call_facts(call.call_id)

    if facts["orders"]:
        call_type = "Order"
    elif facts["reservations"]:
        call_type = "Reservation"
    else:
        call_type = "General Inquiry"

    return CallDetail(
        call_id=call.call_id,
        started_at=call.started_at_utc,
        ended_at=call.ended_at_utc,
        duration_seconds=call.duration_seconds or 0,
        from_number=call.from_number,
        certus_number=call.certus_number,
        status=call.status,
        recording_url=call.recording_url,
        transcript_md=call.transcript_md,
        summary_md=call.summary_md,
        call_summary=call.call_summary,
        call_summary_short=call.call_summary_short,
        pathway_tags_formatted=call.pathway_tags_formatted,
        call_type=call_type,
        call_health=call_health(call.status),
        orders=[OrderDetail.model_validate(o) for o in facts["orders"]],
        reservations=[ReservationDetail.model_validate(r) for r in facts["reservations"]],
        upsells=[UpsellDetail.model_validate(u) for u in facts["upsells"]],
        complaints=[ComplaintDetail.model_validate(c) for c in facts["complaints"]],
    )
