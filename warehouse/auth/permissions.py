"""Path-scoped permission resolution.

Access is the union of every active permission that matches the actor and
any ancestor of the requested path. There is no explicit deny and no
most-specific-wins ordering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol

from fastapi import HTTPException, status

from warehouse.auth.models import Permission, User
from warehouse.auth.paths import ancestors

if TYPE_CHECKING:
    from warehouse.repos.models import Repository


class PermissionSource(Protocol):
    """What the resolver needs from a permission store."""

    def count_active(self, repository_id: str, user_id: Optional[str], paths: list[str]) -> int: ...

    def count_active_admin(self, repository_id: str, user_id: str) -> int: ...

    def grant(self, repository_id: str, **options: Any) -> list[Permission]: ...

    def set(self, repository_id: str, user_id: Optional[str], **options: Any) -> list[Permission]: ...

    def revoke(self, repository_id: str, user_id: Optional[str]) -> int: ...

    def member_ids(self, repository_id: str) -> list[str]: ...

    def repository_ids_for(self, user_id: str) -> list[str]: ...


def _actor_id(user: object) -> Optional[str]:
    return user.id if isinstance(user, User) else None


class PermissionResolver:
    """Decides membership and admin rights on repositories."""

    def __init__(self, store: PermissionSource) -> None:
        self.store = store

    def member(self, repository: Repository, user: object, path: Optional[str] = None) -> bool:
        """Check whether ``user`` may reach ``path`` inside ``repository``.

        Parameters
        ----------
        repository:
            The repository being accessed.
        user:
            A ``User``, or anything else (typically None) for anonymous access.
            Anonymous actors only match permissions granted to everyone.
        path:
            Repository-relative path; None or ``""`` means the root.

        Returns
        -------
        bool
            True for public repositories, site admins, or when any active
            permission covers an ancestor of ``path``.
        """
        if repository.public or (isinstance(user, User) and user.admin):
            return True
        count = self.store.count_active(repository.id, _actor_id(user), ancestors(path))
        return count != 0

    def admin(self, repository: Repository, user: object) -> Optional[bool]:
        """Check whether ``user`` administers ``repository``.

        Returns None, not False, when ``user`` is not a ``User``: the caller
        has no identity to judge. Admin rows grant admin for the whole
        repository regardless of their path.
        """
        if not isinstance(user, User):
            return None
        if user.admin:
            return True
        return self.store.count_active_admin(repository.id, user.id) != 0

    def grant(self, repository: Repository, **options: Any) -> list[Permission]:
        return self.store.grant(repository.id, **options)

    def set(self, repository: Repository, user: object, **options: Any) -> list[Permission]:
        return self.store.set(repository.id, _actor_id(user), **options)

    def revoke(self, repository: Repository, user: object) -> int:
        return self.store.revoke(repository.id, _actor_id(user))

    def members(self, repository: Repository) -> list[str]:
        """User ids holding an active permission on ``repository``."""
        return self.store.member_ids(repository.id)

    def repository_ids_for(self, user: User) -> list[str]:
        return self.store.repository_ids_for(user.id)


def require_member(
    resolver: PermissionResolver,
    repository: Repository,
    user: Optional[User],
    path: Optional[str] = None,
) -> None:
    """Raise ``HTTPException(403)`` unless ``user`` may reach ``path``.

    Usage in a router::

        @router.get("/repos/{name}/browse/{path:path}")
        async def browse(name: str, path: str, user: User | None = Depends(get_optional_user)):
            require_member(resolver, repo_for(name), user, path)
            ...
    """
    if not resolver.member(repository, user, path):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"No access to '{path or '/'}' in repository '{repository.name}'",
        )


def require_admin(resolver: PermissionResolver, repository: Repository, user: Optional[User]) -> None:
    """Raise 401 for anonymous callers and 403 for non-admins."""
    allowed = resolver.admin(repository, user)
    if allowed is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Requires admin access to repository '{repository.name}'",
        )
