"""File-based storage for repositories and changesets.

Repositories live in ``<base_dir>/repositories.json``. Changesets are
append-only JSONL files, one per repository, under
``<base_dir>/changesets/``.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Optional

from warehouse.exceptions import ChangesetConflictError
from warehouse.repos.models import Changeset, Repository


class RepositoryStore:
    """File-based storage for repositories."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".warehouse" / "repos"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._repos_path = self._base / "repositories.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

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

    @staticmethod
    def _repo_from_dict(d: dict) -> Repository:
        return Repository(
            id=d["id"],
            name=d["name"],
            path=d.get("path", ""),
            subdomain=d.get("subdomain", ""),
            public=bool(d.get("public", False)),
            created_at=d.get("created_at", ""),
        )

    @staticmethod
    def _repo_to_dict(r: Repository) -> dict:
        return {
            "id": r.id,
            "name": r.name,
            "path": r.path,
            "subdomain": r.subdomain,
            "public": r.public,
            "created_at": r.created_at,
        }

    # ------------------------------------------------------------------
    # Repository CRUD
    # ------------------------------------------------------------------

    def create_repo(
        self, name: str, path: str, subdomain: str = "", public: bool = False
    ) -> Repository:
        """Persist a new repository. Raises ``ValueError`` if the name is taken."""
        if self.get_repo_by_name(name) is not None:
            raise ValueError(f"Repository '{name}' already exists")
        repo = Repository(
            id=str(uuid.uuid4()),
            name=name,
            path=path,
            subdomain=subdomain,
            public=public,
        )
        repos = self._read_json(self._repos_path)
        repos.append(self._repo_to_dict(repo))
        self._write_json(self._repos_path, repos)
        return repo

    def get_repo(self, repo_id: str) -> Optional[Repository]:
        for d in self._read_json(self._repos_path):
            if d["id"] == repo_id:
                return self._repo_from_dict(d)
        return None

    def get_repo_by_name(self, name: str) -> Optional[Repository]:
        for d in self._read_json(self._repos_path):
            if d["name"] == name:
                return self._repo_from_dict(d)
        return None

    def list_repos(self) -> list[Repository]:
        repos = [self._repo_from_dict(d) for d in self._read_json(self._repos_path)]
        return sorted(repos, key=lambda r: r.name)

    def update_repo(self, repo: Repository) -> Repository:
        """Overwrite the stored fields of an existing repository."""
        repos = self._read_json(self._repos_path)
        for i, d in enumerate(repos):
            if d["id"] == repo.id:
                repos[i] = self._repo_to_dict(repo)
                self._write_json(self._repos_path, repos)
                return repo
        raise ValueError(f"Repository '{repo.id}' does not exist")

    def delete_repo(self, repo_id: str) -> bool:
        repos = self._read_json(self._repos_path)
        kept = [d for d in repos if d["id"] != repo_id]
        if len(kept) < len(repos):
            self._write_json(self._repos_path, kept)
            return True
        return False


class ChangesetStore:
    """Append-only storage for mirrored changesets.

    The recorded revision numbers of each repository are indexed in memory
    after the first scan of its file. The index is rebuilt whenever the
    file's size or modification time no longer matches what this store
    last saw, so appends from another process are picked up.
    """

    CHANGESET_DIR = "changesets"

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            base = Path.home() / ".warehouse" / "repos"
        else:
            base = Path(base_dir)
        self.store_dir = base / self.CHANGESET_DIR
        # repository_id -> (file signature, recorded revisions)
        self._index: dict[str, tuple[Optional[tuple[int, int]], set[int]]] = {}

    def _file_for(self, repository_id: str) -> Path:
        return self.store_dir / f"{repository_id}.jsonl"

    @staticmethod
    def _signature(path: Path) -> Optional[tuple[int, int]]:
        try:
            st = path.stat()
        except FileNotFoundError:
            return None
        return st.st_size, st.st_mtime_ns

    def _revisions(self, repository_id: str) -> set[int]:
        path = self._file_for(repository_id)
        signature = self._signature(path)
        cached = self._index.get(repository_id)
        if cached is not None and cached[0] == signature:
            return cached[1]

        revisions: set[int] = set()
        if signature is not None:
            with open(path) as f:
                for line in f:
                    line = line.strip()
                    if line:
                        revisions.add(int(json.loads(line)["revision"]))
        self._index[repository_id] = (signature, revisions)
        return revisions

    def record(self, changeset: Changeset) -> Changeset:
        """Append a changeset.

        Raises:
            ChangesetConflictError: If the revision is already recorded.
        """
        revisions = self._revisions(changeset.repository_id)
        if changeset.revision in revisions:
            raise ChangesetConflictError(changeset.repository_id, changeset.revision)

        self.store_dir.mkdir(parents=True, exist_ok=True)
        entry = {
            "repository_id": changeset.repository_id,
            "revision": changeset.revision,
            "commit_id": changeset.commit_id,
            "author": changeset.author,
            "message": changeset.message,
            "changed_at": changeset.changed_at,
            "paths": changeset.paths,
        }
        path = self._file_for(changeset.repository_id)
        with open(path, "a") as f:
            f.write(json.dumps(entry) + "\n")
        revisions.add(changeset.revision)
        self._index[changeset.repository_id] = (self._signature(path), revisions)
        return changeset

    def get_history(self, repository_id: str) -> list[Changeset]:
        """Return recorded changesets, newest revision first."""
        path = self._file_for(repository_id)
        if not path.exists():
            return []

        changesets = []
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                changesets.append(
                    Changeset(
                        repository_id=data["repository_id"],
                        revision=int(data["revision"]),
                        commit_id=data.get("commit_id", ""),
                        author=data.get("author", ""),
                        message=data.get("message", ""),
                        changed_at=data.get("changed_at", ""),
                        paths=data.get("paths", []),
                    )
                )
        return sorted(changesets, key=lambda c: c.revision, reverse=True)

    def get_latest(self, repository_id: str) -> Changeset | None:
        history = self.get_history(repository_id)
        return history[0] if history else None

    def latest_revision_for(self, repository_id: str) -> int | None:
        revisions = self._revisions(repository_id)
        return max(revisions) if revisions else None

    def clear(self, repository_id: str) -> int:
        """Delete every changeset of a repository. Returns how many were removed."""
        count = len(self._revisions(repository_id))
        self._file_for(repository_id).unlink(missing_ok=True)
        self._index.pop(repository_id, None)
        return count
