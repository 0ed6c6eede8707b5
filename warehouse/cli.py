"""Warehouse CLI — manage repositories, permissions, and changeset syncing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table

from warehouse import __version__
from warehouse.auth.models import User
from warehouse.auth.permissions import PermissionResolver
from warehouse.auth.store import PermissionStore, UserStore
from warehouse.config import WarehouseConfig, load_config
from warehouse.exceptions import NotFoundError, WarehouseError
from warehouse.logging import configure_logging
from warehouse.repos.models import Repository
from warehouse.repos.store import ChangesetStore, RepositoryStore

console = Console()


@dataclass
class Context:
    """Stores shared by every command."""

    config: WarehouseConfig
    users: UserStore
    permissions: PermissionStore
    repos: RepositoryStore
    changesets: ChangesetStore

    @property
    def resolver(self) -> PermissionResolver:
        return PermissionResolver(self.permissions)

    def repo(self, name: str) -> Repository:
        repo = self.repos.get_repo_by_name(name)
        if repo is None:
            raise NotFoundError(f"Repository '{name}' not found")
        return repo

    def user(self, login: str) -> User:
        user = self.users.get_user_by_login(login)
        if user is None:
            raise NotFoundError(f"User '{login}' not found")
        return user


pass_context = click.make_pass_decorator(Context)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/]")
    raise click.exceptions.Exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--home", envvar="WAREHOUSE_HOME", default=None, help="Data directory (default: ~/.warehouse)")
@click.pass_context
def main(ctx: click.Context, home: str | None):
    """Warehouse — path-scoped access control for mirrored repositories.

    Register repositories, grant users access to paths inside them, and
    mirror backend revisions into the local changeset store.
    """
    try:
        config = load_config(home)
    except WarehouseError as e:
        _fail(e.message)
    configure_logging(config.log_level)
    ctx.obj = Context(
        config=config,
        users=UserStore(config.auth_dir),
        permissions=PermissionStore(config.auth_dir),
        repos=RepositoryStore(config.repos_dir),
        changesets=ChangesetStore(config.repos_dir),
    )


# ── Repositories ─────────────────────────────────────────────────────


@main.group()
def repo():
    """Manage repositories."""


@repo.command(name="add")
@click.argument("name")
@click.argument("path")
@click.option("--subdomain", default="", help="Subdomain (default: the repository name)")
@click.option("--public", is_flag=True, help="Allow everyone to read the repository")
@pass_context
def repo_add(obj: Context, name: str, path: str, subdomain: str, public: bool):
    """Register the backend at PATH as repository NAME."""
    try:
        created = obj.repos.create_repo(name, path, subdomain=subdomain, public=public)
    except ValueError as e:
        _fail(str(e))
    console.print(f"  Added: [cyan]{created.name}[/] -> {created.path} ({created.domain(obj.config.domain)})")


@repo.command(name="list")
@pass_context
def repo_list(obj: Context):
    """List registered repositories."""
    repos = obj.repos.list_repos()
    if not repos:
        console.print("[yellow]No repositories registered.[/]")
        return

    table = Table(title=f"Repositories ({len(repos)})")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    table.add_column("Domain")
    table.add_column("Public", justify="center")

    for r in repos:
        public = "[green]Y[/]" if r.public else "[dim]N[/]"
        table.add_row(r.name, r.path, r.domain(obj.config.domain), public)

    console.print(table)


@repo.command(name="remove")
@click.argument("name")
@pass_context
def repo_remove(obj: Context, name: str):
    """Remove a repository with its changesets and permissions."""
    try:
        target = obj.repo(name)
    except WarehouseError as e:
        _fail(e.message)
    changesets = obj.changesets.clear(target.id)
    permissions = obj.permissions.delete_for_repository(target.id)
    obj.repos.delete_repo(target.id)
    console.print(f"  Removed {name} ({changesets} changesets, {permissions} permissions)")


# ── Users ────────────────────────────────────────────────────────────


@main.group()
def user():
    """Manage users."""


@user.command(name="add")
@click.argument("login")
@click.option("--email", default="", help="Email address")
@click.option("--admin", is_flag=True, help="Make the user a site-wide admin")
@pass_context
def user_add(obj: Context, login: str, email: str, admin: bool):
    """Create a user."""
    try:
        created = obj.users.create_user(login, email=email, admin=admin)
    except ValueError as e:
        _fail(str(e))
    role = " (site admin)" if created.admin else ""
    console.print(f"  Added user [cyan]{created.login}[/]{role}")


@user.command(name="list")
@pass_context
def user_list(obj: Context):
    """List users."""
    users = obj.users.list_users()
    if not users:
        console.print("[yellow]No users.[/]")
        return

    table = Table(title=f"Users ({len(users)})")
    table.add_column("Login", style="cyan")
    table.add_column("Email")
    table.add_column("Admin", justify="center")
    for u in users:
        table.add_row(u.login, u.email, "[green]Y[/]" if u.admin else "[dim]N[/]")
    console.print(table)


@user.command(name="repos")
@click.argument("login")
@pass_context
def user_repos(obj: Context, login: str):
    """List repositories LOGIN holds permissions on."""
    try:
        target = obj.user(login)
    except WarehouseError as e:
        _fail(e.message)

    names = []
    for repo_id in obj.resolver.repository_ids_for(target):
        found = obj.repos.get_repo(repo_id)
        if found is not None:
            names.append(found.name)

    if not names:
        console.print(f"[yellow]{login} has no repository permissions.[/]")
        return
    for name in sorted(names):
        console.print(f"  [cyan]{name}[/]")


# ── Access ───────────────────────────────────────────────────────────


@main.group()
def access():
    """Grant, revoke, and check repository access."""


@access.command(name="grant")
@click.argument("repo_name")
@click.argument("login", required=False)
@click.option("--path", "-p", "paths", multiple=True, help="Path to grant (repeatable; default: root)")
@click.option("--admin", is_flag=True, help="Grant repository admin rights")
@pass_context
def access_grant(obj: Context, repo_name: str, login: str | None, paths: tuple, admin: bool):
    """Grant LOGIN (or everyone, when omitted) access to REPO_NAME."""
    try:
        target = obj.repo(repo_name)
        user_id = obj.user(login).id if login else None
    except WarehouseError as e:
        _fail(e.message)

    granted = obj.resolver.grant(target, user_id=user_id, paths=list(paths) or None, admin=admin)
    who = login or "everyone"
    for p in granted:
        flag = " [magenta](admin)[/]" if p.admin else ""
        console.print(f"  Granted {who} -> {repo_name}:/{p.path}{flag}")


@access.command(name="set")
@click.argument("repo_name")
@click.argument("login")
@click.option("--path", "-p", "paths", multiple=True, help="Path to allow (repeatable; default: root)")
@click.option("--admin", is_flag=True, help="Grant repository admin rights")
@pass_context
def access_set(obj: Context, repo_name: str, login: str, paths: tuple, admin: bool):
    """Replace LOGIN's permissions on REPO_NAME."""
    try:
        target = obj.repo(repo_name)
        member = obj.user(login)
    except WarehouseError as e:
        _fail(e.message)

    granted = obj.resolver.set(target, member, paths=list(paths) or None, admin=admin)
    listed = ", ".join(f"/{p.path}" for p in granted)
    console.print(f"  {login} on {repo_name}: {listed}")


@access.command(name="revoke")
@click.argument("repo_name")
@click.argument("login")
@pass_context
def access_revoke(obj: Context, repo_name: str, login: str):
    """Revoke all of LOGIN's permissions on REPO_NAME."""
    try:
        target = obj.repo(repo_name)
        member = obj.user(login)
    except WarehouseError as e:
        _fail(e.message)

    count = obj.resolver.revoke(target, member)
    console.print(f"  Revoked {count} permission(s) of {login} on {repo_name}")


@access.command(name="check")
@click.argument("repo_name")
@click.argument("login", required=False)
@click.option("--path", "-p", default="", help="Path inside the repository")
@pass_context
def access_check(obj: Context, repo_name: str, login: str | None, path: str):
    """Check whether LOGIN (or an anonymous visitor) can reach PATH."""
    try:
        target = obj.repo(repo_name)
        actor = obj.user(login) if login else None
    except WarehouseError as e:
        _fail(e.message)

    who = login or "anonymous"
    if obj.resolver.member(target, actor, path):
        console.print(f"  [green]ALLOW[/] {who} -> {repo_name}:/{path.strip('/')}")
    else:
        console.print(f"  [red]DENY[/] {who} -> {repo_name}:/{path.strip('/')}")

    is_admin = obj.resolver.admin(target, actor)
    if is_admin is None:
        console.print("  admin: [dim]unknown[/]")
    else:
        console.print(f"  admin: {'[green]yes[/]' if is_admin else 'no'}")


@access.command(name="members")
@click.argument("repo_name")
@pass_context
def access_members(obj: Context, repo_name: str):
    """List users holding permissions on REPO_NAME."""
    try:
        target = obj.repo(repo_name)
    except WarehouseError as e:
        _fail(e.message)

    permissions = obj.permissions.list_permissions(target.id)
    if not permissions:
        console.print("[yellow]No permissions granted.[/]")
        return

    table = Table(title=f"Members of {repo_name}")
    table.add_column("User", style="cyan")
    table.add_column("Paths")
    table.add_column("Admin", justify="center")

    for user_id in obj.resolver.members(target):
        member = obj.users.get_user(user_id)
        own = [p for p in permissions if p.user_id == user_id]
        table.add_row(
            member.login if member else user_id,
            ", ".join(f"/{p.path}" for p in own),
            "[green]Y[/]" if any(p.admin for p in own) else "[dim]N[/]",
        )

    shared = [p for p in permissions if p.user_id is None]
    if shared:
        table.add_row("[dim](everyone)[/]", ", ".join(f"/{p.path}" for p in shared), "[dim]N[/]")

    console.print(table)


# ── Sync ─────────────────────────────────────────────────────────────


@main.group()
def sync():
    """Track and run changeset syncing."""


def _tracker(obj: Context, target: Repository):
    from warehouse.sync.tracker import SyncStateTracker

    return SyncStateTracker(target, obj.changesets, ttl=obj.config.backend_ttl)


@sync.command(name="status")
@click.argument("repo_name", required=False)
@pass_context
def sync_status(obj: Context, repo_name: str | None):
    """Show how many backend revisions remain to be synced."""
    from warehouse.sync.tracker import SyncStatus

    try:
        targets = [obj.repo(repo_name)] if repo_name else obj.repos.list_repos()
    except WarehouseError as e:
        _fail(e.message)

    if not targets:
        console.print("[yellow]No repositories registered.[/]")
        return

    table = Table(title="Sync Status")
    table.add_column("Repository", style="cyan")
    table.add_column("Synced", justify="right")
    table.add_column("Latest", justify="right")
    table.add_column("Pending", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Status")

    styles = {
        SyncStatus.unknown: "[yellow]unknown[/]",
        SyncStatus.pending: "[red]pending[/]",
        SyncStatus.up_to_date: "[green]up to date[/]",
    }
    for target in targets:
        report = _tracker(obj, target).report()
        table.add_row(
            report.repository,
            str(report.synced_revision),
            "-" if report.latest_revision is None else str(report.latest_revision),
            str(report.pending_count),
            "-" if report.progress is None else f"{report.progress}%",
            styles[report.status],
        )

    console.print(table)


@sync.command(name="run")
@click.argument("repo_name")
@click.option("--num", "-n", type=click.IntRange(min=1), default=None, help="Maximum revisions to ingest")
@pass_context
def sync_run(obj: Context, repo_name: str, num: int | None):
    """Record pending backend revisions of REPO_NAME as changesets."""
    from warehouse.sync.ingest import sync_revisions

    try:
        target = obj.repo(repo_name)
    except WarehouseError as e:
        _fail(e.message)

    console.print(f"\n[bold blue]Warehouse[/] — Syncing: {repo_name}\n")

    tracker = _tracker(obj, target)
    if tracker.backend is None:
        _fail(f"Backend unavailable at '{target.path}'")

    try:
        recorded = sync_revisions(tracker, obj.changesets, num)
    except WarehouseError as e:
        _fail(e.message)

    if not recorded:
        console.print("[green]Nothing to sync.[/]")
        return

    console.print(f"  Recorded r{recorded[0].revision}..r{recorded[-1].revision} ({len(recorded)} changesets)")
    console.print(f"  {tracker.report().summary()}")


if __name__ == "__main__":
    main()
