"""
Scrape commands for running vendor sweeps.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from vendorsweep.core.logging import get_logger

console = Console()
err_console = Console(stderr=True)
logger = get_logger("cli.scrape")

app = typer.Typer(
    help="Run scrape sweeps",
    no_args_is_help=True,
)


def _load_config(config_path: Path | None):
    """Load app config or exit with a readable error."""
    from vendorsweep.core.config import ConfigError, load_app_config

    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


@app.command("run")
def run_scrape(
    vendor: Optional[str] = typer.Option(
        None,
        "--vendor",
        "-V",
        help="Only vendors whose domain contains this text",
    ),
    no_ai: bool = typer.Option(
        False,
        "--no-ai",
        help="Skip the scraper's AI fallback tier",
    ),
    max_parallel: Optional[int] = typer.Option(
        None,
        "--max-parallel",
        "-p",
        min=1,
        help="Concurrent scrape calls per batch (default from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
    cache_backend: Optional[str] = typer.Option(
        None,
        "--cache-backend",
        help="Cache store: rest or sql",
    ),
) -> None:
    """Run a resumable sweep over all discovered vendor URLs.

    Examples:
        vendorsweep scrape run
        vendorsweep scrape run --vendor johnnyseeds --no-ai
        vendorsweep scrape run --cache-backend sql -p 2
    """
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

    from vendorsweep.core.config import CacheBackendType, ConfigError, require_cache_credentials
    from vendorsweep.core.logging import setup_logging
    from vendorsweep.core.orchestrator import BatchReport, VendorQueueError, run_sweep

    config = _load_config(config_path)

    if cache_backend:
        try:
            config.cache.backend = CacheBackendType(cache_backend.lower())
        except ValueError:
            err_console.print(f"[red]Unknown cache backend:[/red] {cache_backend} (use rest or sql)")
            raise typer.Exit(1)
    if max_parallel:
        config.scheduler.max_parallel = max_parallel
    if no_ai:
        config.scraper.skip_ai_fallback = True

    try:
        require_cache_credentials(config)
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    config.ensure_directories()
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    console.print()
    console.print("[bold]Starting sweep[/bold]")
    for key, value in config.summary().items():
        console.print(f"  [dim]{key}:[/dim] {value}")
    if vendor:
        console.print(f"  [dim]vendor filter:[/dim] {vendor}")
    console.print()

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Sweeping...[/cyan]", total=None)

        def on_start(total: int) -> None:
            progress.update(task, total=total)

        def on_batch(report: BatchReport) -> None:
            progress.update(
                task,
                total=report.total,
                completed=report.settled,
                description=(
                    f"[cyan]{report.phase}[/cyan] batch {report.batch} "
                    f"([green]{report.scraped}[/green]/[cyan]{report.cached}[/cyan]/"
                    f"[red]{report.failed}[/red])"
                ),
            )

        try:
            stats = asyncio.run(run_sweep(
                config,
                vendor_filter=vendor,
                on_batch=on_batch,
                on_start=on_start,
            ))
        except VendorQueueError as e:
            progress.stop()
            err_console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    console.print()
    _show_summary(stats)
    console.print(f"\n[dim]Progress saved to: {config.paths.progress_file}[/dim]")
    logger.info(f"Sweep summary: {stats.to_dict()}", extra={"run_id": stats.run_id})


def _show_summary(stats) -> None:
    """Show per-vendor summary table."""
    table = Table(title="Sweep Summary")

    table.add_column("Vendor", style="cyan")
    table.add_column("Scraped", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Cached", justify="right")
    table.add_column("Already done", justify="right", style="dim")

    for name, v in stats.vendors.items():
        table.add_row(name, str(v.scraped), str(v.failed), str(v.cached), str(v.already_done))

    if len(stats.vendors) > 1:
        table.add_section()
        table.add_row(
            "[bold]Total[/bold]",
            str(stats.total_scraped),
            str(stats.total_failed),
            str(stats.total_cached),
            str(sum(v.already_done for v in stats.vendors.values())),
        )

    console.print(table)

    duration = f"{stats.duration_seconds:.1f}s" if stats.duration_seconds else "-"
    console.print(
        f"[dim]{stats.scrape_calls} scrape calls in {stats.batches} batches "
        f"over {stats.rounds} rounds, {duration}[/dim]"
    )
    if stats.checkpoint_errors:
        console.print(
            f"[yellow]{stats.checkpoint_errors} progress checkpoint(s) failed to write[/yellow]"
        )
