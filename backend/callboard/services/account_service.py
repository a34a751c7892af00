"""
Per-account settings: currently only the user-management tier threshold.
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from callboard.config.permissions import MAX_TIER, MIN_TIER, SETTINGS_ADMIN_TIER
from callboard.models import AccountSetting, User
from callboard.schemas.account import AccountSettingsResponse
from callboard.services.user_service import get_account_id, get_creation_threshold, get_user_role

logger = logging.getLogger(__name__)


def _require_account_id(db: Session, user: User) -> int:
    account_id = get_account_id(db, user)
    if account_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No account found for user")
    return account_id


def get_account_settings(db: Session, user: User) -> AccountSettingsResponse:
    """Settings of the user's account; accounts without a row report the default."""
    account_id = _require_account_id(db, user)
    return AccountSettingsResponse(
        account_id=account_id,
        user_creation_permission_level=get_creation_threshold(db, account_id),
    )


def update_account_settings(db: Session, user: User, level: int) -> AccountSettingsResponse:
    account_id = _require_account_id(db, user)

    role = get_user_role(db, user)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User role not found")
    if role.role_id < SETTINGS_ADMIN_TIER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only account owners can update account settings",
        )

    if not MIN_TIER <= level <= MAX_TIER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Permission level must be between {MIN_TIER} and {MAX_TIER}",
        )

    setting = db.query(AccountSetting).filter(AccountSetting.account_id == account_id).first()
    if setting is None:
        setting = AccountSetting(account_id=account_id)
        db.add(setting)
    setting.user_creation_permission_level = level
    db.commit()

    logger.info("Account %s user creation level set to %s by %s", account_id, level, user.id)
    return AccountSettingsResponse(account_id=account_id, user_creation_permission_level=level)
