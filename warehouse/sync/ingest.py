"""Changeset ingestion — record pending backend revisions locally."""

from __future__ import annotations

from typing import Optional, Protocol

from warehouse.logging import get_logger
from warehouse.repos.models import Changeset
from warehouse.sync.tracker import SyncStateTracker

logger = get_logger("sync")


class ChangesetSink(Protocol):
    def record(self, changeset: Changeset) -> Changeset: ...


def sync_revisions(
    tracker: SyncStateTracker,
    changesets: ChangesetSink,
    num: Optional[int] = None,
) -> list[Changeset]:
    """Ingest up to ``num`` pending revisions (all of them when None).

    Revisions are read from the tracker's backend starting at its synced
    revision and recorded oldest first. The tracker is invalidated
    afterwards so the next query sees the new state.

    Returns:
        The recorded changesets; empty when the backend is unavailable or
        nothing is pending.
    """
    if num is not None and num < 1:
        raise ValueError(f"num must be positive, got {num}")

    backend = tracker.backend
    pending = tracker.revisions_to_sync(refresh=True)
    if backend is None or pending is None:
        logger.info("Skipping sync of %s: backend unavailable", tracker.repository.name)
        return []

    start, stop = pending
    if num is not None:
        stop = min(stop, start + num - 1)

    recorded: list[Changeset] = []
    try:
        for info in backend.revisions(start, stop):
            recorded.append(
                changesets.record(
                    Changeset(
                        repository_id=tracker.repository.id,
                        revision=info.revision,
                        commit_id=info.commit_id,
                        author=info.author,
                        message=info.message,
                        changed_at=info.changed_at,
                        paths=info.paths,
                    )
                )
            )
    finally:
        tracker.invalidate()

    logger.info("Synced %d revision(s) of %s", len(recorded), tracker.repository.name)
    return recorded
