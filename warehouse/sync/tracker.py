"""Sync state tracking — how far the local mirror lags its backend.

A repository is synced up to ``synced_revision() - 1`` and the backend has
revisions up to ``latest_revision()``. Nothing here is persisted: the status
is recomputed on every query, subject to per-tracker memoization.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from warehouse.exceptions import BackendError, SyncProgressUndefined
from warehouse.logging import get_logger
from warehouse.repos.models import Repository
from warehouse.sync.backend import DEFAULT_TTL, BackendHandle
from warehouse.sync.git_backend import open_backend

logger = get_logger("sync")


class ChangesetSource(Protocol):
    """What the tracker needs from a changeset store."""

    def latest_revision_for(self, repository_id: str) -> Optional[int]: ...


class SyncStatus(str, Enum):
    """Sync status of a repository."""

    unknown = "unknown"  # backend absent or unreachable
    pending = "pending"
    up_to_date = "up_to_date"


@dataclass
class SyncReport:
    """Snapshot of a repository's sync state."""

    repository: str
    status: SyncStatus
    synced_revision: int
    latest_revision: Optional[int] = None
    revisions_to_sync: Optional[tuple[int, int]] = None
    progress: Optional[int] = None

    @property
    def pending_count(self) -> int:
        if self.revisions_to_sync is None:
            return 0
        low, high = self.revisions_to_sync
        return max(high - low + 1, 0)

    def summary(self) -> str:
        if self.status == SyncStatus.unknown:
            return f"{self.repository}: backend unavailable"
        if self.status == SyncStatus.up_to_date:
            return f"{self.repository}: up to date at r{self.latest_revision}"
        low, high = self.revisions_to_sync
        return f"{self.repository}: r{low}..r{high} pending ({self.progress}%)"


class SyncStateTracker:
    """Tracks sync progress for one repository.

    Holds the repository's backend handle and memoizes the backend's
    youngest revision and the pending range. Share one tracker per
    repository between threads; memoized values are swapped under a lock.
    """

    def __init__(
        self,
        repository: Repository,
        changesets: ChangesetSource,
        handle: Optional[BackendHandle] = None,
        opener: Callable[[str], Any] = open_backend,
        ttl: float = DEFAULT_TTL,
    ) -> None:
        self.repository = repository
        self.changesets = changesets
        self.handle = handle or BackendHandle(repository.path, opener, ttl=ttl)
        self._lock = threading.Lock()
        self._latest_revision: Optional[int] = None
        self._revisions_to_sync: Optional[tuple[int, int]] = None
        # bumped by invalidate(); recomputations begun earlier are not stored
        self._generation = 0

    @property
    def backend(self) -> Any:
        return self.handle.get()

    def synced_revision(self) -> int:
        """Next revision expected locally: latest recorded + 1, or 1."""
        latest = self.changesets.latest_revision_for(self.repository.id)
        return latest + 1 if latest is not None else 1

    def latest_revision(self) -> Optional[int]:
        """Youngest backend revision, or None when the backend is unavailable."""
        with self._lock:
            if self._latest_revision is not None:
                return self._latest_revision
            generation = self._generation

        backend = self.backend
        if backend is None:
            return None
        try:
            latest = backend.youngest_revision()
        except BackendError as e:
            logger.warning(e.message)
            return None

        with self._lock:
            if generation == self._generation:
                self._latest_revision = latest
        return latest

    def revisions_to_sync(self, refresh: bool = False) -> Optional[tuple[int, int]]:
        """Inclusive ``(synced, latest)`` range, memoized until ``refresh``."""
        if self.backend is None:
            return None
        with self._lock:
            cached = self._revisions_to_sync
            generation = self._generation
        if cached is not None and not refresh:
            return cached

        latest = self.latest_revision()
        if latest is None:
            return None
        pending = (self.synced_revision(), latest)
        with self._lock:
            if generation == self._generation:
                self._revisions_to_sync = pending
        return pending

    def sync_due(self) -> bool:
        if self.backend is None:
            return False
        pending = self.revisions_to_sync()
        return pending is not None and pending[0] < pending[1]

    def sync_progress(self) -> int:
        """Percentage of backend revisions mirrored locally, rounded up.

        Capped at 100: a fully synced repository has ``synced_revision() ==
        latest + 1``, which would otherwise report slightly over 100.

        Raises:
            SyncProgressUndefined: If the latest revision is unknown or zero.
        """
        latest = self.latest_revision()
        if not latest:
            raise SyncProgressUndefined(
                f"Latest revision of '{self.repository.name}' is {latest!r}; progress is undefined"
            )
        return min(math.ceil(self.synced_revision() / latest * 100), 100)

    def status(self) -> SyncStatus:
        if self.backend is None or self.latest_revision() is None:
            return SyncStatus.unknown
        return SyncStatus.pending if self.sync_due() else SyncStatus.up_to_date

    def invalidate(self) -> None:
        """Forget the memoized latest revision and pending range."""
        with self._lock:
            self._latest_revision = None
            self._revisions_to_sync = None
            self._generation += 1

    def report(self) -> SyncReport:
        status = self.status()
        latest = self.latest_revision() if status != SyncStatus.unknown else None
        return SyncReport(
            repository=self.repository.name,
            status=status,
            synced_revision=self.synced_revision(),
            latest_revision=latest,
            revisions_to_sync=self.revisions_to_sync() if latest is not None else None,
            progress=self.sync_progress() if latest else None,
        )
