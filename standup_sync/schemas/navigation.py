# standup_sync/schemas/navigation.py
from enum import Enum

from pydantic import BaseModel


class Route(str, Enum):
    LOADING = "loading"
    LANDING = "landing"
    PENDING = "pending"
    SETUP = "setup"
    EMPLOYEE = "employee"
    ADMIN = "admin"


class NavigationRead(BaseModel):
    route: Route
    is_authenticated: bool
    is_admin: bool
    has_completed_setup: bool
    approval_pending: bool = False
