"""
Progress commands for inspecting and resetting sweep state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect or reset sweep progress",
    no_args_is_help=True,
)


def _progress_store(config_path: Path | None):
    from vendorsweep.core.config import ConfigError, load_app_config
    from vendorsweep.core.progress import ProgressStore

    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1)
    return ProgressStore(config.paths.progress_file)


@app.command("show")
def show_progress(
    vendor: Optional[str] = typer.Option(
        None,
        "--vendor",
        "-V",
        help="Only vendors whose domain contains this text",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Show per-vendor progress, including failed URLs."""
    store = _progress_store(config_path)
    if not store.exists():
        err_console.print(f"[red]No progress file at {store.path}[/red]")
        raise typer.Exit(1)

    state = store.load()
    vendors = [v for v in state.vendors if not vendor or vendor in v]
    if not vendors:
        console.print("[dim]No matching vendors in progress file.[/dim]")
        return

    table = Table(title=f"Progress ({store.path})")
    table.add_column("Vendor", style="cyan")
    table.add_column("Completed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Cursor", justify="right")

    for name in vendors:
        table.add_row(
            name,
            str(len(state.completed_for(name))),
            str(len(state.failed_for(name))),
            str(state.cursor_for(name)),
        )
    console.print(table)

    for name in vendors:
        failed = sorted(state.failed_for(name))
        if not failed:
            continue
        console.print()
        console.print(f"[red]Failed URLs for {name}:[/red]")
        for url in failed[:10]:
            console.print(f"  • {url}", markup=False)
        if len(failed) > 10:
            console.print(f"  [dim]... and {len(failed) - 10} more[/dim]")


@app.command("reset")
def reset_progress(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Don't ask for confirmation",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Delete the progress file. The next sweep starts from scratch."""
    store = _progress_store(config_path)
    if not store.exists():
        console.print(f"[dim]No progress file at {store.path}[/dim]")
        return

    if not yes and not typer.confirm(
        f"Delete {store.path}? Every URL will be checked again.", default=False
    ):
        raise typer.Abort()

    store.reset()
    console.print(f"[green]OK[/green] Removed {store.path}")
