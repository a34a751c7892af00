"""
Account Settings API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from callboard.database import get_db
from callboard.dependencies import get_current_user
from callboard.models import User
from callboard.schemas.account import AccountSettingsResponse, AccountSettingsUpdate
from callboard.services import account_service

router = APIRouter()


@router.get("/settings", response_model=AccountSettingsResponse)
async def read_account_settings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return account_service.get_account_settings(db, current_user)


@router.put("/settings", response_model=AccountSettingsResponse)
async def update_account_settings(
    data: AccountSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Owners only. Sets the minimum role tier allowed to manage users."""
    return account_service.update_account_settings(db, current_user, data.user_creation_permission_level)
