"""
Models package - Import all models to ensure SQLAlchemy relationships work
"""
# Import Base first
from callboard.database import Base

# Import models in dependency order to avoid relationship resolution issues
from callboard.models.account import Account, AccountSetting
from callboard.models.location import Location
from callboard.models.user import User
from callboard.models.role_permission import Role, RolePermissionSet, UserRolePermission
from callboard.models.audit_log import UserAuditLog
from callboard.models.call_log import CallLog, OrderLog, Reservation, Upsell, Complaint
from callboard.models.metrics_daily import MetricsDaily

__all__ = [
    "Base",
    "Account",
    "AccountSetting",
    "Location",
    "User",
    "Role",
    "RolePermissionSet",
    "UserRolePermission",
    "UserAuditLog",
    "CallLog",
    "OrderLog",
    "Reservation",
    "Upsell",
    "Complaint",
    "MetricsDaily",
]
