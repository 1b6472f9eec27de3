"""
vendorsweep CLI - Main entry point.

Resumable, rate-limited bulk scraping of vendor product pages into a
shared quality-ranked cache.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from vendorsweep import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

# Force UTF-8 on Windows to avoid encoding issues
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(encoding="utf-8", errors="replace")

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Resumable bulk scraper for vendor product pages",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vendorsweep - bulk vendor page scraper."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import progress, scrape  # noqa: E402

app.add_typer(scrape.app, name="scrape", help="Run scrape sweeps")
app.add_typer(progress.app, name="progress", help="Inspect or reset sweep progress")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Initialize vendorsweep configuration and directories."""
    from vendorsweep.core.config import DEFAULT_APP_CONFIG

    for dir_path in (Path("configs"), Path("data"), Path("logs")):
        dir_path.mkdir(parents=True, exist_ok=True)

    app_config_path = Path("configs/app.yaml")
    if app_config_path.exists() and not force:
        console.print(f"[yellow]{app_config_path} already exists[/yellow] (use --force to overwrite)")
    else:
        app_config_path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - vendorsweep initialized![/bold green]\n\n"
        "Created:\n"
        "  - [cyan]configs/app.yaml[/cyan] - Application configuration\n"
        "  - [cyan]data/[/cyan] - Vendor URLs, progress and local cache\n"
        "  - [cyan]logs/[/cyan] - Log files\n\n"
        "Next steps:\n"
        "  1. Put discovered URLs in [cyan]data/vendor-urls.json[/cyan]\n"
        "  2. Set [yellow]NEXT_PUBLIC_SUPABASE_URL[/yellow] and "
        "[yellow]SUPABASE_SERVICE_ROLE_KEY[/yellow] (or use the sql cache backend)\n"
        "  3. Run a sweep: [yellow]vendorsweep scrape run[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Status Command
# =============================================================================


@app.command()
def status(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Show sweep progress totals and per-vendor state."""
    from rich.table import Table

    from vendorsweep.core.config import ConfigError, load_app_config
    from vendorsweep.core.progress import ProgressStore

    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    store = ProgressStore(config.paths.progress_file)
    if not store.exists():
        err_console.print(
            f"[red]No progress file at {store.path}. Run:[/red] vendorsweep scrape run"
        )
        raise typer.Exit(1)

    state = store.load()
    stats = state.stats

    console.print()
    console.print("[bold]vendorsweep Status[/bold]")
    console.print(
        f"  Scraped: [green]{stats.total_scraped}[/green]  "
        f"Failed: [red]{stats.total_failed}[/red]  "
        f"Cached: [cyan]{stats.total_cached}[/cyan]"
    )
    console.print(
        f"  [dim]Started {stats.started_at:%Y-%m-%d %H:%M}, "
        f"updated {stats.last_updated:%Y-%m-%d %H:%M}[/dim]"
    )
    console.print()

    vendors = state.vendors
    if not vendors:
        console.print("[dim]No vendors processed yet.[/dim]")
        return

    table = Table(title="Vendors", show_header=True, header_style="bold magenta")
    table.add_column("Vendor", style="cyan")
    table.add_column("Completed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Cursor", justify="right")

    for vendor in sorted(vendors):
        table.add_row(
            vendor,
            str(len(state.completed_for(vendor))),
            str(len(state.failed_for(vendor))),
            str(state.cursor_for(vendor)),
        )

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
