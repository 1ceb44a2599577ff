"""
Main CLI entry point for brandguide.
"""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel

from brandguide import __version__
from brandguide.cli.commands.api import api_app
from brandguide.cli.commands.cache import app as cache_app
from brandguide.config.database import db_manager
from brandguide.exceptions import EXIT_CODE_INTERRUPTED

console = Console()

app = typer.Typer(
    name="brandguide",
    help="Brand guidelines service administration",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(api_app, name="api", help="API server commands")
app.add_typer(cache_app, name="cache", help="Drive thumbnail cache commands")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]brandguide[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.command(name="init-db")
def init_db() -> None:
    """Create database tables for assets and thumbnail bookkeeping."""

    async def _create() -> None:
        try:
            await db_manager.create_tables()
        finally:
            await db_manager.close()

    try:
        asyncio.run(_create())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)
    console.print(f"[green]Database ready:[/green] {db_manager.database_url}")


def _configure_console_logging() -> None:
    """Attach a DEBUG console handler to the brandguide logger."""
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    package_logger = logging.getLogger("brandguide")
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", help="Log to the console"
    ),
) -> None:
    """
    brandguide - Brand guidelines service.

    Administer the cached Google Drive thumbnails shown for brand assets.
    """
    if verbose:
        _configure_console_logging()

    if ctx.invoked_subcommand is None:
        console.print(
            "[yellow]Use 'brandguide --help' for available commands[/yellow]"
        )
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
