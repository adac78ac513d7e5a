# auth/login.py
"""
Static two-role login. This is a UI-mode switch, not a security boundary:
credentials are fixed pairs read from settings.
"""
from enum import Enum
from typing import Dict, List, Optional, Tuple

DASHBOARD = "dashboard"
USERS = "users"
PLANS = "plans"
PAYMENTS = "payments"
DUE_DATES = "duedates"

VIEW_TITLES = {
    DASHBOARD: "Dashboard Overview",
    USERS: "User Management",
    PLANS: "WiFi Plans",
    PAYMENTS: "Payment Processing",
    DUE_DATES: "Due Dates & Reminders",
}


class Role(str, Enum):
    ADMIN = "admin"
    COLLECTOR = "collector"


ROLE_VIEWS: Dict[Role, List[str]] = {
    Role.ADMIN: [DASHBOARD, USERS, PLANS, PAYMENTS, DUE_DATES],
    Role.COLLECTOR: [PAYMENTS],
}


def credentials_from_settings(settings) -> Dict[Tuple[str, str], Role]:
    return {
        (settings.admin_user, settings.admin_password): Role.ADMIN,
        (settings.collector_user, settings.collector_password): Role.COLLECTOR,
    }


DEFAULT_CREDENTIALS = {
    ("admin", "admin"): Role.ADMIN,
    ("collector", "collector"): Role.COLLECTOR,
}


def authenticate(
    username: str,
    password: str,
    credentials: Optional[Dict[Tuple[str, str], Role]] = None,
) -> Optional[Role]:
    credentials = credentials or DEFAULT_CREDENTIALS
    return credentials.get(((username or "").strip(), password or ""))


def allowed_views(role: Role) -> List[str]:
    return list(ROLE_VIEWS.get(role, []))


def default_view(role: Role) -> str:
    return PAYMENTS if role == Role.COLLECTOR else DASHBOARD


def resolve_view(role: Role, requested: Optional[str]) -> str:
    """
    Views outside the role fall back to Payments, which every role can see.
    """
    if requested in allowed_views(role):
        return requested
    return PAYMENTS
