"""
Location access for the current user, derived from their grants.
"""
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from callboard.models import Location, User, UserRolePermission


def get_accessible_locations(db: Session, user: User) -> List[Location]:
    """Locations the user holds a grant for, in grant order."""
    grants = (
        db.query(UserRolePermission)
        .options(joinedload(UserRolePermission.location))
        .filter(UserRolePermission.user_id == user.id)
        .order_by(UserRolePermission.created_at, UserRolePermission.location_id)
        .all()
    )
    return [g.location for g in grants if g.location is not None]


def select_location(db: Session, user: User, location_id: Optional[int] = None) -> Location:
    """
    The requested location if granted, else the user's first location.

    A user with no grants gets a 404 naming their email rather than an empty
    report.
    """
    locations = get_accessible_locations(db, user)
    if not locations:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No location is associated with {user.email}",
        )
    if location_id is None:
        return locations[0]
    for location in locations:
        if location.location_id == location_id:
            return location
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
