"""CLI commands for the content portal.

Commands:
- init-db: Create the schema (and the configured bootstrap admin)
- create-user / list-users: Account management
- add-node: Create a city/school/semester/group/subject
- browse: Show the listing at a browse path
- serve: Run the Web API with uvicorn
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from portal.config.app_config import load_app_config
from portal.config.log_setup import configure_logging
from portal.core import auth
from portal.core.browse import NodeNotFoundError, build_browse_view
from portal.core.hierarchy import CATEGORY_LEVELS, Level
from portal.core.navigation import InvalidBrowsePathError
from portal.db import hierarchy_repository, users_repository
from portal.db.database import init_db
from portal.db.hierarchy_repository import HierarchyError
from portal.db.users_repository import ROLES, DuplicateUserError
from portal.utils.validators import MAX_ROW_ID, is_valid_slug, slugify

app = typer.Typer(
    name="portal",
    help="University community content portal.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    db: Path | None = typer.Option(
        None, "--db", envvar="PORTAL_DB_PATH", help="SQLite database file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Select the database every command works on."""
    configure_logging("DEBUG" if verbose else "WARNING")
    config = load_app_config()
    init_db(db or config.db_path)


@app.command(name="init-db")
def init_database() -> None:
    """Create tables and the bootstrap admin from the config, if any."""
    config = load_app_config()
    console.print("[green]✓ Schema ready[/green]")

    admin = config.bootstrap_admin
    if admin is None:
        return

    if users_repository.get_user_by_username(admin.username):
        console.print(f"  [dim]admin '{admin.username}' already exists[/dim]")
        return

    try:
        user = auth.register_user(
            username=admin.username,
            password=admin.password,
            role="admin",
            email=admin.email,
            min_password_length=config.auth.min_password_length,
        )
    except (auth.AccountError, DuplicateUserError) as e:
        console.print(f"[red]✗ Bootstrap admin not created: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Admin created:[/green] {user.username} ({user.id})")


@app.command(name="create-user")
def create_user(
    username: str = typer.Argument(..., help="Login name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    role: str = typer.Option("student", "--role", "-r", help="student | teacher | admin"),
    email: str | None = typer.Option(None, "--email", "-e", help="Email address"),
) -> None:
    """Create a user account."""
    if role not in ROLES:
        console.print(f"[red]✗ Unknown role '{role}'[/red] (use {', '.join(ROLES)})")
        raise typer.Exit(code=1)

    config = load_app_config()
    try:
        user = auth.register_user(
            username=username,
            password=password,
            role=role,
            email=email,
            min_password_length=config.auth.min_password_length,
        )
    except (auth.AccountError, DuplicateUserError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ User created:[/green] {user.username}")
    console.print(f"  [dim]id:[/dim]   {user.id}")
    console.print(f"  [dim]role:[/dim] {user.role}")


@app.command(name="list-users")
def list_users() -> None:
    """List user accounts."""
    users = users_repository.list_users()
    if not users:
        console.print("[dim]No users yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Username", style="cyan")
    table.add_column("Role")
    table.add_column("Name")
    table.add_column("Id", style="dim")
    for user in users:
        table.add_row(user.username, user.role, user.full_name, user.id)
    console.print(table)


@app.command(name="add-node")
def add_node(
    level: str = typer.Argument(..., help="city | school | semester | group | subject"),
    name: str = typer.Argument(..., help="Display name"),
    parent: int | None = typer.Option(
        None, "--parent", "-p", min=1, max=MAX_ROW_ID, help="Parent node id"
    ),
    slug: str | None = typer.Option(None, "--slug", "-s", help="Slug (default: from name)"),
) -> None:
    """Create a node of the category hierarchy."""
    try:
        node_level = Level(level)
    except ValueError:
        node_level = None
    if node_level not in CATEGORY_LEVELS:
        names = ", ".join(lv.value for lv in CATEGORY_LEVELS)
        console.print(f"[red]✗ Unknown level '{level}'[/red] (use {names})")
        raise typer.Exit(code=1)

    node_slug = slug or slugify(name)
    if not is_valid_slug(node_slug):
        console.print(f"[red]✗ Invalid slug '{node_slug}'[/red]")
        raise typer.Exit(code=1)

    try:
        node = hierarchy_repository.create_node(node_level, name, node_slug, parent)
    except HierarchyError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {node_level.label} created:[/green] {node.name}")
    console.print(f"  [dim]id:[/dim]   {node.id}")
    console.print(f"  [dim]slug:[/dim] {node.slug}")


@app.command()
def browse(
    path: str = typer.Argument("/browse", help="Browse path, e.g. /browse/city/1"),
) -> None:
    """Show the items listed at a browse path and where each one links."""
    try:
        view = build_browse_view(path)
    except InvalidBrowsePathError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    except NodeNotFoundError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(code=1)

    console.print(" › ".join(c.label for c in view.breadcrumbs))
    console.print(f"[bold]{view.title}[/bold] [dim]({view.endpoint})[/dim]")

    if not view.cards:
        console.print("[dim]No items found at this level.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Id", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Link", style="dim")
    for card in view.cards:
        table.add_row(str(card.id), card.title, card.type or "", card.href)
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    configure_logging("INFO")
    uvicorn.run("portal.web.api:app", host=host, port=port, reload=reload)
