"""
Role tier registry: the coarse, ordered tiers a role-permission-set belongs to.

Tiers gate only *whether* a user may create other users at all (the account
setting). Which role a user may hand out is decided by comparing permission
sets, see callboard.services.access_control.
"""

SUPPORT_STAFF = 1
MANAGER = 2
SENIOR_MANAGER = 3
ADMIN = 4
OWNER = 5

ROLE_TIERS = {
    SUPPORT_STAFF:  {"label": "Support Staff",  "description": "Front-line support and basic operations"},
    MANAGER:        {"label": "Manager",        "description": "Location managers and supervisors"},
    SENIOR_MANAGER: {"label": "Senior Manager", "description": "Multi-location oversight"},
    ADMIN:          {"label": "Admin",          "description": "Full administrative access"},
    OWNER:          {"label": "Owner",          "description": "Account owners only"},
}

MIN_TIER = min(ROLE_TIERS)
MAX_TIER = max(ROLE_TIERS)

# Only this tier may change the account-wide user creation threshold
SETTINGS_ADMIN_TIER = OWNER

# Used when an account has no account_settings row yet (most restrictive)
DEFAULT_USER_CREATION_TIER = MAX_TIER
