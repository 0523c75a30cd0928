"""
Typer CLI for the learning-path engine.

Commands:
    pathengine db init                    - Create database tables
    pathengine db check-counts            - Audit cached num_nodes against node rows
    pathengine objects resolve            - Resolve a typed reference for a viewer
    pathengine objects find ID            - Resolve an id of unknown origin
    pathengine objects search [TERM]      - Search catalog and local objects
    pathengine paths show ID_OR_HRUID     - Show one learning path
    pathengine paths objects PATH_ID      - Resolve every object of a path
    pathengine nodes list PATH_ID         - List the nodes of a local path
    pathengine nodes add PATH_ID          - Attach a node to a local path
    pathengine nodes update PATH_ID NODE  - Swap a node's reference or start flag
    pathengine nodes remove PATH_ID NODE  - Remove a node
    pathengine progress student S PATH    - Student progress on a path
    pathengine progress team T PATH       - Team progress on a path
    pathengine progress assignment A      - Average progress of an assignment

Usage:
    pathengine nodes add <path-id> --hruid pn_werking --language nl --version 3
    pathengine objects resolve --local <object-id> --teacher
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from pathengine.content.records import ContentRecord, NodeRecord
from pathengine.context import EngineContext
from pathengine.db.database import init_db, validate_node_counts
from pathengine.errors import PathEngineError
from pathengine.references import ContentReference, parse_reference

app = typer.Typer(
    help="Learning-path engine: resolve content from two stores and compose paths",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main_callback(ctx: typer.Context) -> None:
    """Resolve content from the local store and the external catalog."""


def _engine(ctx: typer.Context) -> EngineContext:
    root = ctx.find_root()
    if isinstance(root.obj, EngineContext):
        return root.obj
    if not isinstance(root.obj, dict):
        root.obj = {}
    if "engine" not in root.obj:
        engine = EngineContext.from_settings()
        root.obj["engine"] = engine
        root.call_on_close(engine.close)
    return root.obj["engine"]


@contextmanager
def _typed_failures() -> Iterator[None]:
    """Report a typed failure in red and exit with code 1."""
    try:
        yield
    except PathEngineError as e:
        rprint(f"[red]✗ {e.kind}:[/red] {e.message}")
        raise typer.Exit(code=1) from e


def _reference(
    local_id: str | None,
    hruid: str | None,
    language: str | None,
    version: int | None,
) -> ContentReference:
    # Catalog fields are only considered when no local id is given
    return parse_reference(local_id is None, local_id, hruid, language, version)


def _objects_table(title: str, records: list[ContentRecord]) -> Table:
    table = Table(title=title)
    table.add_column("Origin", style="cyan")
    table.add_column("HRUID")
    table.add_column("Lang")
    table.add_column("Ver", justify="right")
    table.add_column("Title")
    table.add_column("Flags", style="dim")
    for record in records:
        flags = []
        if record.teacher_exclusive:
            flags.append("teacher")
        if not record.available:
            flags.append("unavailable")
        table.add_row(
            record.origin,
            record.hruid,
            record.language,
            str(record.version),
            record.title,
            ", ".join(flags),
        )
    return table


def _print_node(node: NodeRecord) -> None:
    start = " [yellow](start)[/yellow]" if node.start_node else ""
    rprint(f"  {node.node_id}  {node.reference.describe()}{start}")


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management (init, count audit)")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init(ctx: typer.Context) -> None:
    """
    Create all tables of the local content store.

    Safe to run multiple times (idempotent).
    """
    engine = _engine(ctx)
    if engine.engine is None:
        rprint("[red]✗[/red] No database engine configured")
        raise typer.Exit(code=1)
    init_db(engine.engine)
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("check-counts")
def db_check_counts(ctx: typer.Context) -> None:
    """Report paths whose cached num_nodes disagrees with their node rows."""
    engine = _engine(ctx)
    if engine.engine is None:
        rprint("[red]✗[/red] No database engine configured")
        raise typer.Exit(code=1)
    result = validate_node_counts(engine.engine)
    if result["valid"]:
        rprint("[green]✓[/green] All node counts match")
        return

    table = Table(title=f"Stale node counts ({len(result['mismatches'])})")
    table.add_column("Path", style="cyan")
    table.add_column("Claimed", justify="right")
    table.add_column("Actual", justify="right")
    for row in result["mismatches"]:
        table.add_row(row["path_id"], str(row["claimed"]), str(row["actual"]))
    console.print(table)
    raise typer.Exit(code=1)


# ========================================
# OBJECT COMMANDS
# ========================================

objects_app = typer.Typer(help="Resolve and search learning objects")
app.add_typer(objects_app, name="objects")


@objects_app.command("resolve")
def objects_resolve(
    ctx: typer.Context,
    local_id: str | None = typer.Option(None, "--local", help="Local learning object id"),
    hruid: str | None = typer.Option(None, "--hruid", help="Catalog hruid"),
    language: str | None = typer.Option(None, "--language", "-l", help="Catalog language"),
    version: int | None = typer.Option(None, "--version", "-v", help="Catalog version"),
    teacher: bool = typer.Option(False, "--teacher", help="Resolve as a teacher"),
) -> None:
    """Resolve a typed reference (local id, or catalog triple)."""
    with _typed_failures():
        reference = _reference(local_id, hruid, language, version)
        record = _engine(ctx).resolver.resolve(reference, viewer_is_teacher=teacher)
    console.print(_objects_table(reference.describe(), [record]))


@objects_app.command("find")
def objects_find(
    ctx: typer.Context,
    object_id: str = typer.Argument(..., help="Catalog or local object id"),
    teacher: bool = typer.Option(False, "--teacher", help="Resolve as a teacher"),
) -> None:
    """Resolve an id of unknown origin (catalog first, then local)."""
    with _typed_failures():
        record = _engine(ctx).resolver.resolve_by_id(object_id, viewer_is_teacher=teacher)
    console.print(_objects_table(object_id, [record]))


@objects_app.command("search")
def objects_search(
    ctx: typer.Context,
    term: str | None = typer.Argument(None, help="Search term (omit to list everything)"),
    teacher: bool = typer.Option(False, "--teacher", help="Search as a teacher"),
) -> None:
    """Search catalog and local learning objects."""
    with _typed_failures():
        records = _engine(ctx).resolver.search_objects(term, viewer_is_teacher=teacher)
    console.print(_objects_table(f"Learning objects ({len(records)})", records))


# ========================================
# PATH COMMANDS
# ========================================

paths_app = typer.Typer(help="Inspect learning paths")
app.add_typer(paths_app, name="paths")


@paths_app.command("show")
def paths_show(
    ctx: typer.Context,
    id_or_hruid: str = typer.Argument(..., help="Path id or hruid"),
) -> None:
    """Show one learning path (catalog first, then local)."""
    with _typed_failures():
        path = _engine(ctx).resolver.find_path(id_or_hruid)

    table = Table(title=path.title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Id", path.id)
    table.add_row("HRUID", path.hruid)
    table.add_row("Language", path.language)
    table.add_row("Origin", "external" if path.is_external else "local")
    table.add_row("Nodes", str(path.num_nodes))
    console.print(table)


@paths_app.command("objects")
def paths_objects(
    ctx: typer.Context,
    path_id: str = typer.Argument(..., help="Catalog or local path id"),
    teacher: bool = typer.Option(False, "--teacher", help="Resolve as a teacher"),
) -> None:
    """Resolve every visible object of a path."""
    with _typed_failures():
        records = _engine(ctx).resolver.resolve_path_objects(path_id, viewer_is_teacher=teacher)
    console.print(_objects_table(f"Objects of {path_id} ({len(records)})", records))


# ========================================
# NODE COMMANDS
# ========================================

nodes_app = typer.Typer(help="Compose local learning paths")
app.add_typer(nodes_app, name="nodes")


@nodes_app.command("list")
def nodes_list(
    ctx: typer.Context,
    path_id: str = typer.Argument(..., help="Local path id"),
) -> None:
    """List the nodes of a local path."""
    with _typed_failures():
        nodes = _engine(ctx).nodes.list_nodes(path_id)
    rprint(f"[bold]{path_id}[/bold]: {len(nodes)} nodes")
    for node in nodes:
        _print_node(node)


@nodes_app.command("add")
def nodes_add(
    ctx: typer.Context,
    path_id: str = typer.Argument(..., help="Local path id"),
    local_id: str | None = typer.Option(None, "--local", help="Local learning object id"),
    hruid: str | None = typer.Option(None, "--hruid", help="Catalog hruid"),
    language: str | None = typer.Option(None, "--language", "-l", help="Catalog language"),
    version: int | None = typer.Option(None, "--version", "-v", help="Catalog version"),
    start: bool = typer.Option(False, "--start", help="Mark as start node"),
) -> None:
    """Attach a node pointing at a local object or a catalog object."""
    with _typed_failures():
        reference = _reference(local_id, hruid, language, version)
        node = _engine(ctx).nodes.create_node(path_id, reference, start_node=start)
    rprint("[green]✓[/green] Node created")
    _print_node(node)


@nodes_app.command("update")
def nodes_update(
    ctx: typer.Context,
    path_id: str = typer.Argument(..., help="Local path id"),
    node_id: str = typer.Argument(..., help="Node id"),
    local_id: str | None = typer.Option(None, "--local", help="Local learning object id"),
    hruid: str | None = typer.Option(None, "--hruid", help="Catalog hruid"),
    language: str | None = typer.Option(None, "--language", "-l", help="Catalog language"),
    version: int | None = typer.Option(None, "--version", "-v", help="Catalog version"),
    start: bool | None = typer.Option(None, "--start/--no-start", help="Set the start flag"),
) -> None:
    """Swap a node's reference and/or its start flag."""
    with _typed_failures():
        reference = None
        if any(v is not None for v in (local_id, hruid, language, version)):
            reference = _reference(local_id, hruid, language, version)
        node = _engine(ctx).nodes.update_node(path_id, node_id, reference, start_node=start)
    rprint("[green]✓[/green] Node updated")
    _print_node(node)


@nodes_app.command("remove")
def nodes_remove(
    ctx: typer.Context,
    path_id: str = typer.Argument(..., help="Local path id"),
    node_id: str = typer.Argument(..., help="Node id"),
) -> None:
    """Remove a node from a local path."""
    with _typed_failures():
        remaining = _engine(ctx).nodes.delete_node(path_id, node_id)
    rprint(f"[green]✓[/green] Node removed ({remaining} left)")


# ========================================
# PROGRESS COMMANDS
# ========================================

progress_app = typer.Typer(help="Student, team and assignment progress")
app.add_typer(progress_app, name="progress")


@progress_app.command("student")
def progress_student(
    ctx: typer.Context,
    student_id: int = typer.Argument(..., help="Student id"),
    path_id: str = typer.Argument(..., help="Local path id"),
) -> None:
    """Percentage of a path a student has completed."""
    with _typed_failures():
        percent = _engine(ctx).aggregator.student_path_progress(student_id, path_id)
    rprint(f"Student {student_id}: [bold]{percent:.1f}%[/bold]")


@progress_app.command("team")
def progress_team(
    ctx: typer.Context,
    team_id: int = typer.Argument(..., help="Team id"),
    path_id: str = typer.Argument(..., help="Local path id"),
) -> None:
    """Best member's percentage on a path."""
    with _typed_failures():
        percent = _engine(ctx).aggregator.team_path_progress(team_id, path_id)
    rprint(f"Team {team_id}: [bold]{percent:.1f}%[/bold]")


@progress_app.command("assignment")
def progress_assignment(
    ctx: typer.Context,
    assignment_id: int = typer.Argument(..., help="Assignment id"),
) -> None:
    """Average team percentage of an assignment."""
    with _typed_failures():
        percent = _engine(ctx).aggregator.assignment_average_progress(assignment_id)
    rprint(f"Assignment {assignment_id}: [bold]{percent:.1f}%[/bold]")


def configure_logging(settings: Settings) -> None:
    """Route loguru to stderr, plus a rotating file when configured."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="<level>{message}</level>")
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


def main() -> None:
    """Entry point for the CLI."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
