"""
CLI tool for inspecting stored filter slugs.

Provides commands for listing the slugs of a listing endpoint and for
showing the filter combination behind a slug.
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from listing_filters.exceptions import FilterDataDecodeError
from listing_filters.models.slugged_filter import SluggedFilter
from listing_filters.repositories.slugged_filter_repository import (
    SluggedFilterRepository,
)
from listing_filters.schemas.scope import Scope
from listing_filters.services.slug_store import SlugStore
from listing_filters.storage.db import async_session

# Initialize Typer app with help text
typer_app = typer.Typer(
    name="listing-filters",
    help="Listing Filters CLI - Inspect slugged filter combinations",
    add_completion=False,
)
console = Console()


async def _list_slugs(
    plugin: str | None, controller: str | None, action: str | None
) -> list[SluggedFilter]:
    async with async_session() as session:
        repo = SluggedFilterRepository(session)
        return await repo.list_slugs(
            plugin=plugin, controller=controller, action=action
        )


async def _find_filter_data(scope: Scope, slug: str) -> dict | None:
    async with async_session() as session:
        store = SlugStore(SluggedFilterRepository(session))
        return await store.find_filter_data(scope, slug)


@typer_app.command(name="slugs")
def slugs(
    controller: str | None = typer.Option(
        None, "--controller", "-c", help="Only slugs of this controller"
    ),
    action: str | None = typer.Option(
        None, "--action", "-a", help="Only slugs of this action"
    ),
    plugin: str | None = typer.Option(
        None, "--plugin", "-p", help="Only slugs of this plugin"
    ),
):
    """
    Display a table of stored filter slugs.

    Example:
        listing-filters slugs --controller posts --action index
    """
    records = asyncio.run(_list_slugs(plugin, controller, action))

    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Stored Filter Slugs[/bold cyan]", border_style="cyan"
        )
    )
    console.print()

    if not records:
        console.print("[yellow]No slugs stored[/yellow]")
        console.print()
        return

    table = Table(
        "Slug",
        "Endpoint",
        "Filter Data",
        "Created",
        title="Slugged Filters",
        show_lines=True,
    )
    for record in records:
        endpoint = "/".join(
            part
            for part in (record.plugin, record.controller, record.action)
            if part
        )
        table.add_row(
            f"[green]{record.slug}[/green]",
            endpoint,
            record.filter_data,
            record.created.isoformat(timespec="seconds"),
        )

    console.print(table)
    console.print()
    console.print(f"[bold]Total:[/bold] {len(records)} slugs")
    console.print()


@typer_app.command(name="show-slug")
def show_slug(
    slug: str = typer.Argument(..., help="Slug to look up"),
    controller: str = typer.Option(..., "--controller", "-c"),
    action: str = typer.Option(..., "--action", "-a"),
    plugin: str | None = typer.Option(None, "--plugin", "-p"),
):
    """
    Show the filter combination stored for a slug.

    Example:
        listing-filters show-slug abcdefghikmnop -c posts -a index
    """
    scope = Scope(plugin=plugin, controller=controller, action=action)
    try:
        filter_data = asyncio.run(_find_filter_data(scope, slug))
    except FilterDataDecodeError as ex:
        console.print(f"[red]✗ Stored filter data is unreadable:[/red] {ex}")
        raise typer.Exit(code=1)

    if filter_data is None:
        console.print(f"[red]✗ Unknown slug[/red] [cyan]{slug}[/cyan]")
        raise typer.Exit(code=1)

    console.print_json(json.dumps(filter_data))


if __name__ == "__main__":
    typer_app()
