"""Git backend — numbered revisions over a Git repository.

Git has no revision counter, so revisions are numbered by position in the
topologically ordered history of ``HEAD``: the root commit is revision 1
and the youngest revision equals the number of reachable commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from warehouse.exceptions import BackendError


@dataclass
class RevisionInfo:
    """A single numbered revision read from the backend."""

    revision: int
    commit_id: str
    author: str = ""
    message: str = ""
    changed_at: str = ""
    paths: list[str] = field(default_factory=list)


class GitBackend:
    """Wrapper around GitPython exposing numbered revisions."""

    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    @property
    def path(self) -> Path:
        return Path(self.repo.working_tree_dir or self.repo.git_dir)

    def youngest_revision(self) -> int:
        """Number of commits reachable from ``HEAD``; 0 for an empty repository."""
        if not self.repo.head.is_valid():
            return 0
        try:
            return int(self.repo.git.rev_list("--count", "HEAD"))
        except GitCommandError as e:
            raise BackendError(f"Cannot count revisions in {self.path}: {e}") from e

    def revision(self, number: int) -> RevisionInfo:
        """Return revision ``number`` (1-based, oldest first)."""
        for info in self.revisions(number, number):
            return info
        raise BackendError(f"Revision {number} does not exist in {self.path}")

    def revisions(self, start: int, stop: int) -> Iterator[RevisionInfo]:
        """Yield revisions ``start`` through ``stop`` inclusive, oldest first.

        Revisions beyond the youngest one are silently skipped.
        """
        if start < 1 or stop < start or not self.repo.head.is_valid():
            return
        try:
            shas = self.repo.git.rev_list("--topo-order", "--reverse", "HEAD").splitlines()
        except GitCommandError as e:
            raise BackendError(f"Cannot read history of {self.path}: {e}") from e

        for number in range(start, min(stop, len(shas)) + 1):
            commit = self.repo.commit(shas[number - 1])
            yield RevisionInfo(
                revision=number,
                commit_id=commit.hexsha,
                author=str(commit.author),
                message=commit.message.strip(),
                changed_at=datetime.fromtimestamp(commit.committed_date, tz=timezone.utc).isoformat(),
                paths=sorted(commit.stats.files.keys()),
            )


def open_backend(path: str) -> GitBackend:
    """Open the Git repository at ``path``.

    Raises:
        BackendError: If the path is missing or is not a Git repository.
    """
    try:
        return GitBackend(Repo(path))
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise BackendError(f"Not a valid git repository: {path}") from e
    except GitCommandError as e:
        raise BackendError(f"Cannot open repository at {path}: {e}") from e
