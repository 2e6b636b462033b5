from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import sessionmaker

from releasetracker.config.log import configure_logging
from releasetracker.config.settings import settings
from releasetracker.db.engine import build_engine
from releasetracker.db.init_db import ensure_db, init_db
from releasetracker.repos.change_log_repo import ChangeLogRepository
from releasetracker.services.change_detection import run_change_detection
from releasetracker.services.exceptions import ReleaseTrackerError
from releasetracker.services.release_feed import ReleasePlanFeed

app = typer.Typer(help="Release plan tracker CLI (init DB, refresh, changes, serve).")
console = Console()


@app.callback()
def _setup() -> None:
    configure_logging(settings.log_level)


@app.command("init-db")
def init_db_cmd(
    reset: bool = typer.Option(False, "--reset", help="Drop all tables first (destroys history)."),
) -> None:
    engine = build_engine()
    if reset:
        init_db(engine)
    else:
        ensure_db(engine)
    typer.echo("✅ Database initialized and reachable.")


@app.command("refresh")
def refresh_cmd() -> None:
    """Fetch the feed and record new/changed features."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    try:
        with SessionLocal() as session:
            result = run_change_detection(session, ReleasePlanFeed())
    except ReleaseTrackerError as e:
        console.print(f"[red]✗[/red] Refresh failed: {e}")
        raise typer.Exit(1)

    if result.baseline:
        console.print(f"[green]✓[/green] Baseline: {result.total} features snapshotted")
        if result.message:
            console.print(result.message)
    else:
        console.print(
            f"[green]✓[/green] {result.total} features: "
            f"{result.new_count} new, {result.changed_count} changed"
        )


@app.command("changes")
def changes_cmd(
    days: int = typer.Option(14, "--days", min=1, max=90, help="Look-back window in days."),
    limit: int = typer.Option(500, "--limit", min=1, help="Max rows to show."),
) -> None:
    """Show recently detected changes."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    with SessionLocal() as session:
        rows = ChangeLogRepository(session).list_recent(days=days, limit=limit)

    table = Table(title=f"Changes in the last {days} days")
    table.add_column("Detected", style="green")
    table.add_column("Product", style="cyan")
    table.add_column("Feature", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Field")
    table.add_column("Old")
    table.add_column("New")

    for c in rows:
        table.add_row(
            c.detected_at.strftime("%Y-%m-%d %H:%M"),
            c.product_name,
            c.feature_name,
            c.change_type,
            c.field_changed or "",
            c.old_value or "",
            c.new_value or "",
        )

    console.print(table)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("releasetracker.api.main:app", host=host, port=port, log_level=settings.log_level.lower())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
