"""
Analytics API Routes
"""
from datetime import date
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from callboard.database import get_db
from callboard.dependencies import get_current_user, get_session_factory
from callboard.models import User
from callboard.schemas.analytics import AnalyticsResponse, CallType, TimeRange
from callboard.services.analytics_service import build_analytics, resolve_date_range
from callboard.services.call_repository import CallRepository
from callboard.services.export_service import build_metrics_csv, export_filename
from callboard.services.location_service import select_location

router = APIRouter()


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(
    location_id: Optional[int] = Query(None, description="Defaults to the user's first location"),
    time_range: TimeRange = Query(TimeRange.WEEK, alias="range"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    call_type: CallType = Query(CallType.ALL),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Bucketed call metrics for one location with period-over-period deltas.

    Hourly buckets for a single day, daily buckets otherwise.
    """
    location = select_location(db, current_user, location_id)
    start, end = resolve_date_range(time_range, start_date, end_date)

    repo = CallRepository(session_factory, reason=f"analytics for location {location.location_id}")
    return await build_analytics(repo, location, start, end, call_type)


@router.get("/export")
async def export_analytics(
    location_id: Optional[int] = Query(None),
    time_range: TimeRange = Query(TimeRange.WEEK, alias="range"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Daily metrics rows as a CSV download."""
    location = select_location(db, current_user, location_id)
    start, end = resolve_date_range(time_range, start_date, end_date)

    repo = CallRepository(session_factory, reason=f"metrics export for location {location.location_id}")
    rows = repo.fetch_daily_rows(location.location_id, start, end)

    return Response(
        content=build_metrics_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(location.location_id, start, end)}"},
    )
