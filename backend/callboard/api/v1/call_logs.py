"""
Call Log API Routes
"""
from datetime import date
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from callboard.database import get_db
from callboard.dependencies import get_current_user, get_session_factory
from callboard.models import User
from callboard.schemas.analytics import TimeRange
from callboard.schemas.call_log import CallDetail, CallLogList
from callboard.services.analytics_service import resolve_date_range
from callboard.services.call_log_service import get_call_detail, list_calls
from callboard.services.call_repository import CallRepository
from callboard.services.location_service import select_location

router = APIRouter()


@router.get("", response_model=CallLogList)
async def get_call_logs(
    location_id: Optional[int] = Query(None),
    time_range: TimeRange = Query(TimeRange.WEEK, alias="range"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Most recent calls for a location, newest first."""
    location = select_location(db, current_user, location_id)
    start, end = resolve_date_range(time_range, start_date, end_date)

    repo = CallRepository(session_factory, reason=f"call log for location {location.location_id}")
    return await list_calls(repo, location, start, end)


@router.get("/{call_id}", response_model=CallDetail)
async def get_call_log(
    call_id: str,
    location_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    location = select_location(db, current_user, location_id)
    repo = CallRepository(session_factory, reason=f"call detail {call_id}")
    return await get_call_detail(repo, location, call_id)
