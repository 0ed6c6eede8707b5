"""Tests for the Git backend adapter."""

import tempfile
from pathlib import Path

import pytest
from git import Actor, Repo

from warehouse.exceptions import BackendError
from warehouse.repos.models import Repository
from warehouse.repos.store import ChangesetStore
from warehouse.sync.git_backend import open_backend
from warehouse.sync.ingest import sync_revisions
from warehouse.sync.tracker import SyncStateTracker, SyncStatus

AUTHOR = Actor("Test Author", "author@example.com")


def _make_repo(path: Path, commits: int) -> Repo:
    repo = Repo.init(path)
    for i in range(1, commits + 1):
        name = f"file{i}.txt"
        (path / name).write_text(f"content {i}\n")
        repo.index.add([name])
        repo.index.commit(f"commit {i}", author=AUTHOR, committer=AUTHOR)
    return repo


def test_open_backend_rejects_missing_and_plain_directories():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(BackendError):
            open_backend(str(Path(tmpdir) / "missing"))
        with pytest.raises(BackendError):
            open_backend(tmpdir)


def test_youngest_revision_counts_commits():
    with tempfile.TemporaryDirectory() as tmpdir:
        _make_repo(Path(tmpdir), 3)
        assert open_backend(tmpdir).youngest_revision() == 3


def test_empty_repository_has_no_revisions():
    with tempfile.TemporaryDirectory() as tmpdir:
        Repo.init(tmpdir)
        backend = open_backend(tmpdir)
        assert backend.youngest_revision() == 0
        assert list(backend.revisions(1, 5)) == []


def test_revisions_are_numbered_oldest_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = _make_repo(Path(tmpdir), 3)
        backend = open_backend(tmpdir)

        infos = list(backend.revisions(1, 10))
        assert [i.revision for i in infos] == [1, 2, 3]
        assert [i.message for i in infos] == ["commit 1", "commit 2", "commit 3"]
        assert infos[-1].commit_id == repo.head.commit.hexsha
        assert infos[1].paths == ["file2.txt"]
        assert infos[0].author == "Test Author"

        assert backend.revision(2).message == "commit 2"
        with pytest.raises(BackendError):
            backend.revision(4)


def test_sync_git_repository_end_to_end():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_dir = Path(tmpdir) / "repo"
        repo_dir.mkdir()
        _make_repo(repo_dir, 4)

        store = ChangesetStore(Path(tmpdir) / "data")
        repository = Repository(id="r1", name="repo", path=f"{repo_dir}/")
        tracker = SyncStateTracker(repository, store)

        assert tracker.revisions_to_sync() == (1, 4)
        assert tracker.sync_progress() == 25

        sync_revisions(tracker, store)
        assert tracker.status() == SyncStatus.up_to_date
        assert [c.revision for c in store.get_history("r1")] == [4, 3, 2, 1]
