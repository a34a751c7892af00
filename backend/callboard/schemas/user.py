"""
User Management Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime


class UserCreate(BaseModel):
    """New user with one role at one location"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    role_permission_id: int
    location_id: int
    full_name: Optional[str] = None


class UserUpdate(BaseModel):
    """Only fields that are set are applied"""
    full_name: Optional[str] = None
    role_permission_id: Optional[int] = None
    location_ids: Optional[List[int]] = None


class UserCreatedResponse(BaseModel):
    user_id: str


class UserCreationPermission(BaseModel):
    can_create: bool
    user_role_id: Optional[int] = None


class CreatableRole(BaseModel):
    role_permission_id: int
    name: str
    description: Optional[str] = None
    role_name: Optional[str] = None
    role_id: int
    permission_ids: List[int]


class AssignableLocation(BaseModel):
    location_id: int
    location_name: str
    account_id: int


class UserLocation(BaseModel):
    location_id: int
    location_name: str


class AccountUser(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None
    role_name: str
    role_permission_name: str
    role_permission_id: Optional[int] = None
    locations: List[UserLocation]


class MessageResponse(BaseModel):
    message: str
