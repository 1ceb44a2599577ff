"""
CLI commands for managing the Drive thumbnail cache.

Provides ``brandguide cache status``, ``brandguide cache reap`` and
``brandguide cache invalidate`` for inspecting and maintaining the local
copies of Google Drive thumbnails.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from brandguide.config.database import db_manager
from brandguide.config.settings import settings
from brandguide.exceptions import (
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_INVALID_ARGS,
)
from brandguide.repositories import SQLAlchemyMetadataStore
from brandguide.services.thumbnail_cache import (
    ThumbnailCacheConfig,
    ThumbnailCacheService,
)

console = Console()

app = typer.Typer(
    name="cache",
    help="Manage the Drive thumbnail cache.",
    no_args_is_help=True,
)


def _build_cache_service() -> ThumbnailCacheService:
    """Build a ThumbnailCacheService from application settings.

    Returns
    -------
    ThumbnailCacheService
        Configured thumbnail cache service.
    """
    return ThumbnailCacheService(
        config=ThumbnailCacheConfig.from_settings(settings),
        metadata_store=SQLAlchemyMetadataStore(db_manager.get_session_factory()),
    )


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


@app.command(name="status")
def status() -> None:
    """
    Display thumbnail cache statistics.

    Shows recorded entries, files on disk, total size and cache ages.

    Examples:
        brandguide cache status
    """
    try:
        asyncio.run(_status_async())
    except KeyboardInterrupt:
        console.print("\n[yellow]Status check interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _status_async() -> None:
    """Async implementation of the cache status command."""
    service = _build_cache_service()
    try:
        stats = await service.get_thumbnail_cache_stats()
    finally:
        await db_manager.close()

    table = Table(title="Drive Thumbnail Cache Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Cached entries", f"{stats.total_cached:,}")
    table.add_row("Files on disk", f"{stats.file_count:,}")
    table.add_row("Size", format_size(stats.cache_size))

    console.print()
    console.print(table)
    console.print()

    console.print(f"  Cache directory: {service.config.cache_dir}")
    console.print(f"  Retention:       {service.config.ttl.days} days")
    if stats.oldest_cache is not None:
        console.print(f"  Oldest entry:    {stats.oldest_cache.strftime('%Y-%m-%d %H:%M')}")
    if stats.newest_cache is not None:
        console.print(f"  Newest entry:    {stats.newest_cache.strftime('%Y-%m-%d %H:%M')}")
    console.print()


@app.command(name="reap")
def reap() -> None:
    """
    Reclaim thumbnails older than the retention window.

    Examples:
        brandguide cache reap
    """
    try:
        asyncio.run(_reap_async())
    except KeyboardInterrupt:
        console.print("\n[yellow]Reap interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _reap_async() -> None:
    """Async implementation of the cache reap command."""
    service = _build_cache_service()
    try:
        cleared = await service.clear_expired_thumbnails()
    finally:
        await db_manager.close()

    if cleared:
        console.print(f"[green]Reclaimed {cleared} expired thumbnail(s)[/green]")
    else:
        console.print("[blue]No expired thumbnails to reclaim[/blue]")


@app.command(name="invalidate")
def invalidate(
    asset_id: int = typer.Argument(..., help="Asset whose thumbnails to drop"),
    force: bool = typer.Option(
        False,
        "--force",
        help="Skip confirmation prompt",
    ),
) -> None:
    """
    Drop every cached thumbnail size for one asset.

    The next request for the asset fetches a fresh copy from Drive.

    Examples:
        brandguide cache invalidate 42
        brandguide cache invalidate 42 --force
    """
    if asset_id <= 0:
        console.print("[red]Error: ASSET_ID must be a positive integer[/red]")
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)

    if not force:
        confirmation = typer.confirm(
            f"Are you sure you want to invalidate cached thumbnails for asset {asset_id}?",
            default=False,
        )
        if not confirmation:
            console.print("[yellow]Invalidation cancelled by user[/yellow]")
            raise typer.Exit(code=1)

    try:
        asyncio.run(_invalidate_async(asset_id))
    except KeyboardInterrupt:
        console.print("\n[yellow]Invalidation interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _invalidate_async(asset_id: int) -> None:
    """Async implementation of the cache invalidate command."""
    service = _build_cache_service()
    try:
        await service.invalidate_thumbnail_cache(asset_id)
    finally:
        await db_manager.close()

    console.print(f"[green]Invalidated cached thumbnails for asset {asset_id}[/green]")
