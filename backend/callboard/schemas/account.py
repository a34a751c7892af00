"""
Account Settings Schemas
"""
from pydantic import BaseModel


class AccountSettingsResponse(BaseModel):
    account_id: int
    user_creation_permission_level: int


class AccountSettingsUpdate(BaseModel):
    # Range checked after the owner check so non-owners always get a 403
    user_creation_permission_level: int
