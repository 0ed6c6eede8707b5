"""File-based JSON storage for users and repository permissions.

Provides a DB-ready interface backed by simple JSON files under
``~/.warehouse/auth/``.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Iterable, Optional

from warehouse.auth.models import Permission, User


class _JsonStore:
    """Shared JSON list file helpers."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".warehouse" / "auth"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            return []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        path.write_text(json.dumps(data, indent=2, default=str))


class UserStore(_JsonStore):
    """File-based storage for users.

    Storage path: ``<base_dir>/users.json`` -- list of user dicts.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(base_dir)
        self._users_path = self._base / "users.json"

    @staticmethod
    def _user_from_dict(d: dict) -> User:
        return User(
            id=d["id"],
            login=d["login"],
            email=d.get("email", ""),
            admin=bool(d.get("admin", False)),
            created_at=d.get("created_at", ""),
        )

    @staticmethod
    def _user_to_dict(u: User) -> dict:
        return {
            "id": u.id,
            "login": u.login,
            "email": u.email,
            "admin": u.admin,
            "created_at": u.created_at,
        }

    def create_user(self, login: str, email: str = "", admin: bool = False) -> User:
        """Persist a new user. Raises ``ValueError`` if the login is taken."""
        if self.get_user_by_login(login) is not None:
            raise ValueError(f"User '{login}' already exists")
        user = User(id=str(uuid.uuid4()), login=login, email=email, admin=admin)
        users = self._read_json(self._users_path)
        users.append(self._user_to_dict(user))
        self._write_json(self._users_path, users)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        for d in self._read_json(self._users_path):
            if d["id"] == user_id:
                return self._user_from_dict(d)
        return None

    def get_user_by_login(self, login: str) -> Optional[User]:
        for d in self._read_json(self._users_path):
            if d.get("login", "").lower() == login.lower():
                return self._user_from_dict(d)
        return None

    def list_users(self) -> list[User]:
        return [self._user_from_dict(d) for d in self._read_json(self._users_path)]


class PermissionStore(_JsonStore):
    """File-based storage for repository permissions.

    Storage path: ``<base_dir>/permissions.json`` -- list of permission dicts.
    Revoked permissions stay in the file with ``active`` set to false.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__(base_dir)
        self._permissions_path = self._base / "permissions.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _permission_from_dict(d: dict) -> Permission:
        return Permission(
            id=d["id"],
            repository_id=d["repository_id"],
            user_id=d.get("user_id"),
            path=d.get("path", ""),
            admin=bool(d.get("admin", False)),
            active=bool(d.get("active", True)),
            created_at=d.get("created_at", ""),
        )

    @staticmethod
    def _permission_to_dict(p: Permission) -> dict:
        return {
            "id": p.id,
            "repository_id": p.repository_id,
            "user_id": p.user_id,
            "path": p.path,
            "admin": p.admin,
            "active": p.active,
            "created_at": p.created_at,
        }

    def _active(self, repository_id: str) -> Iterable[dict]:
        for d in self._read_json(self._permissions_path):
            if d["repository_id"] == repository_id and d.get("active", True):
                yield d

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count_active(
        self, repository_id: str, user_id: Optional[str], paths: Iterable[str]
    ) -> int:
        """Count active permissions for ``user_id`` (or everyone) on any of ``paths``.

        Records with a null ``user_id`` match every actor. When ``user_id`` is
        None only those records match.
        """
        wanted = set(paths)
        return sum(
            1
            for d in self._active(repository_id)
            if (d.get("user_id") is None or (user_id is not None and d.get("user_id") == user_id))
            and d.get("path", "") in wanted
        )

    def count_active_admin(self, repository_id: str, user_id: str) -> int:
        """Count active admin permissions held by ``user_id``, whatever their path."""
        return sum(
            1
            for d in self._active(repository_id)
            if d.get("user_id") == user_id and d.get("admin", False)
        )

    def list_permissions(self, repository_id: str, include_inactive: bool = False) -> list[Permission]:
        return [
            self._permission_from_dict(d)
            for d in self._read_json(self._permissions_path)
            if d["repository_id"] == repository_id and (include_inactive or d.get("active", True))
        ]

    def member_ids(self, repository_id: str) -> list[str]:
        """Return distinct user ids with an active permission, in grant order."""
        seen: list[str] = []
        for d in self._active(repository_id):
            user_id = d.get("user_id")
            if user_id is not None and user_id not in seen:
                seen.append(user_id)
        return seen

    def repository_ids_for(self, user_id: str) -> list[str]:
        """Return distinct repository ids where ``user_id`` has an active permission."""
        seen: list[str] = []
        for d in self._read_json(self._permissions_path):
            if d.get("user_id") == user_id and d.get("active", True) and d["repository_id"] not in seen:
                seen.append(d["repository_id"])
        return seen

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def grant(
        self,
        repository_id: str,
        user_id: Optional[str] = None,
        paths: Optional[Iterable[str]] = None,
        admin: bool = False,
    ) -> list[Permission]:
        """Grant ``user_id`` (or everyone) access to each of ``paths``.

        Defaults to the repository root. An existing active permission for the
        same user and path is updated in place rather than duplicated.
        """
        targets = [p.strip("/") for p in (paths if paths is not None else [""])]
        rows = self._read_json(self._permissions_path)
        granted: list[Permission] = []

        for path in dict.fromkeys(targets):
            existing = next(
                (
                    d for d in rows
                    if d["repository_id"] == repository_id
                    and d.get("user_id") == user_id
                    and d.get("path", "") == path
                    and d.get("active", True)
                ),
                None,
            )
            if existing is not None:
                existing["admin"] = admin
                granted.append(self._permission_from_dict(existing))
                continue

            permission = Permission(
                id=str(uuid.uuid4()),
                repository_id=repository_id,
                user_id=user_id,
                path=path,
                admin=admin,
            )
            rows.append(self._permission_to_dict(permission))
            granted.append(permission)

        self._write_json(self._permissions_path, rows)
        return granted

    def set(
        self,
        repository_id: str,
        user_id: Optional[str],
        paths: Optional[Iterable[str]] = None,
        admin: bool = False,
    ) -> list[Permission]:
        """Replace the active permissions of ``user_id`` with a fresh grant."""
        self.revoke(repository_id, user_id)
        return self.grant(repository_id, user_id=user_id, paths=paths, admin=admin)

    def revoke(self, repository_id: str, user_id: Optional[str]) -> int:
        """Deactivate every active permission of ``user_id``. Returns the count."""
        rows = self._read_json(self._permissions_path)
        revoked = 0
        for d in rows:
            if d["repository_id"] == repository_id and d.get("user_id") == user_id and d.get("active", True):
                d["active"] = False
                revoked += 1
        if revoked:
            self._write_json(self._permissions_path, rows)
        return revoked

    def delete_for_repository(self, repository_id: str) -> int:
        """Remove every permission row, active or not, for a repository."""
        rows = self._read_json(self._permissions_path)
        kept = [d for d in rows if d["repository_id"] != repository_id]
        if len(kept) < len(rows):
            self._write_json(self._permissions_path, kept)
        return len(rows) - len(kept)
