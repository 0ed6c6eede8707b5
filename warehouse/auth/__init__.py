"""Path-scoped access control for repositories."""

from warehouse.auth.models import Permission, User
from warehouse.auth.paths import ancestors
from warehouse.auth.permissions import PermissionResolver

__all__ = [
    "Permission",
    "PermissionResolver",
    "User",
    "ancestors",
]
