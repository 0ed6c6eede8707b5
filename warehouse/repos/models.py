"""Repository domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def normalize_repo_path(value: Any) -> str:
    """Stringify a backend location and drop trailing separators."""
    return str(value or "").rstrip("/")


@dataclass
class Repository:
    """A repository mirrored from a version-control backend.

    ``path`` is the backend location. Every assignment strips trailing
    ``/`` so the stored path never ends with a separator.
    """

    id: str
    name: str
    path: str
    subdomain: str = ""
    public: bool = False
    created_at: str = ""

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "path":
            value = normalize_repo_path(value)
        super().__setattr__(name, value)

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.utcnow().isoformat()
        if not self.subdomain:
            self.subdomain = self.name

    def domain(self, base_domain: str) -> str:
        return ".".join([self.subdomain, base_domain])


@dataclass
class Changeset:
    """A backend revision recorded in the local mirror."""

    repository_id: str
    revision: int
    commit_id: str = ""
    author: str = ""
    message: str = ""
    changed_at: str = ""
    paths: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.revision < 0:
            raise ValueError(f"Revision must be non-negative, got {self.revision}")
