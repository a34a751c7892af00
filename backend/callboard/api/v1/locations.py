"""
Location API Routes
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from callboard.database import get_db
from callboard.dependencies import get_current_user
from callboard.models import User
from callboard.schemas.analytics import LocationSummary
from callboard.services.analytics_service import location_summary
from callboard.services.location_service import get_accessible_locations

router = APIRouter()


@router.get("", response_model=List[LocationSummary])
async def list_locations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Locations the current user holds a grant for."""
    return [location_summary(loc) for loc in get_accessible_locations(db, current_user)]
