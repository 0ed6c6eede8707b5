"""Tests for path-scoped permission resolution."""

import tempfile

import pytest
from fastapi import HTTPException

from warehouse.auth.models import User
from warehouse.auth.permissions import PermissionResolver, require_admin, require_member
from warehouse.auth.store import PermissionStore
from warehouse.repos.models import Repository


def _setup(tmpdir: str, public: bool = False):
    resolver = PermissionResolver(PermissionStore(tmpdir))
    repo = Repository(id="r1", name="project", path="/srv/project", public=public)
    return resolver, repo


def _user(user_id: str = "u1", admin: bool = False) -> User:
    return User(id=user_id, login=f"login-{user_id}", admin=admin)


def test_public_repository_allows_everyone():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir, public=True)
        assert resolver.member(repo, None, "/a/b/c")
        assert resolver.member(repo, _user(), "/a/b/c")
        assert resolver.member(repo, "not-a-user")


def test_site_admin_allowed_without_permissions():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        assert resolver.member(repo, _user(admin=True), "secret/area")
        assert resolver.admin(repo, _user(admin=True)) is True


def test_no_permissions_denies():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        assert not resolver.member(repo, _user(), "")
        assert not resolver.member(repo, None)


def test_permission_on_ancestor_grants_descendants():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=["docs"])

        assert resolver.member(repo, user, "docs")
        assert resolver.member(repo, user, "docs/api/index.html")
        assert not resolver.member(repo, user, "src")
        assert not resolver.member(repo, user, "")
        assert not resolver.member(repo, user, "documents")


def test_root_permission_grants_everything():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id)
        assert resolver.member(repo, user, "any/deep/path")


def test_permissions_are_per_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        resolver.grant(repo, user_id="u1", paths=[""])
        assert resolver.member(repo, _user("u1"), "src")
        assert not resolver.member(repo, _user("u2"), "src")


def test_everyone_permission_matches_anonymous_and_users():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        resolver.grant(repo, user_id=None, paths=["pub"])
        assert resolver.member(repo, None, "pub/readme")
        assert resolver.member(repo, _user(), "pub")
        assert not resolver.member(repo, None, "private")


def test_anonymous_never_matches_user_permissions():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        resolver.grant(repo, user_id="0", paths=[""])
        assert not resolver.member(repo, None, "")


def test_member_is_monotone():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=["a/b"])
        assert resolver.member(repo, user, "a/b/c")
        for extra in ["", "a", "a/b/c", "z"]:
            resolver.grant(repo, user_id=user.id, paths=[extra])
            assert resolver.member(repo, user, "a/b/c")


def test_revoked_permissions_do_not_resolve():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=["docs"], admin=True)
        assert resolver.revoke(repo, user) == 1
        assert not resolver.member(repo, user, "docs")
        assert resolver.admin(repo, user) is False


def test_admin_unknown_for_non_users():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        assert resolver.admin(repo, None) is None
        assert resolver.admin(repo, "someone") is None


def test_admin_false_without_admin_rows():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=[""])
        assert resolver.admin(repo, user) is False


def test_admin_ignores_permission_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=["docs"], admin=True)
        assert resolver.admin(repo, user) is True
        # membership stays path scoped
        assert not resolver.member(repo, user, "src")


def test_set_replaces_existing_permissions():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        user = _user()
        resolver.grant(repo, user_id=user.id, paths=["docs", "src"])
        resolver.set(repo, user, paths=["tests"])

        assert resolver.member(repo, user, "tests/unit")
        assert not resolver.member(repo, user, "docs")
        assert not resolver.member(repo, user, "src")


def test_members_and_repositories_for():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        other = Repository(id="r2", name="other", path="/srv/other")
        resolver.grant(repo, user_id="u1", paths=["a", "b"])
        resolver.grant(repo, user_id="u2")
        resolver.grant(repo, user_id=None, paths=["pub"])
        resolver.grant(other, user_id="u1")

        assert resolver.members(repo) == ["u1", "u2"]
        assert resolver.repository_ids_for(_user("u1")) == ["r1", "r2"]
        assert resolver.repository_ids_for(_user("u2")) == ["r1"]


def test_require_member_raises_403():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        with pytest.raises(HTTPException) as exc:
            require_member(resolver, repo, _user(), "docs")
        assert exc.value.status_code == 403

        resolver.grant(repo, user_id="u1", paths=["docs"])
        require_member(resolver, repo, _user(), "docs/guide")


def test_require_admin_distinguishes_unknown_from_denied():
    with tempfile.TemporaryDirectory() as tmpdir:
        resolver, repo = _setup(tmpdir)
        with pytest.raises(HTTPException) as exc:
            require_admin(resolver, repo, None)
        assert exc.value.status_code == 401

        with pytest.raises(HTTPException) as exc:
            require_admin(resolver, repo, _user())
        assert exc.value.status_code == 403

        resolver.grant(repo, user_id="u1", paths=["docs"], admin=True)
        require_admin(resolver, repo, _user())
