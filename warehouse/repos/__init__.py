"""Repositories and their locally mirrored changesets."""

from warehouse.repos.models import Changeset, Repository
from warehouse.repos.store import ChangesetStore, RepositoryStore

__all__ = [
    "Changeset",
    "ChangesetStore",
    "Repository",
    "RepositoryStore",
]
