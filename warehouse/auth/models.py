"""Auth domain models for users and repository permissions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    """Represents an authenticated user.

    ``admin`` is the site-wide flag: it grants access to every repository
    without consulting permission records.
    """

    id: str
    login: str
    email: str = ""
    admin: bool = False
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.utcnow().isoformat()


@dataclass
class Permission:
    """Grants a user (or everyone, when ``user_id`` is None) access to a path.

    ``path`` is relative to the repository root; ``""`` is the root itself.
    Inactive permissions are kept for history but never resolve.
    """

    id: str
    repository_id: str
    user_id: Optional[str] = None
    path: str = ""
    admin: bool = False
    active: bool = True
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.utcnow().isoformat()
        self.path = self.path.strip("/")
