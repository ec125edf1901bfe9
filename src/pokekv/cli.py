"""
Command Line Interface for PokeKV.

Provides commands for running the API server, writing a default
configuration, and inspecting or resetting the pokemon collection.

Built with Typer for automatic tab completion.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .core.config import Settings, get_default_config_file
from .core.errors import AtomicFailure
from .core.logging import setup_logging
from .kv.base import KvError
from .kv.factory import open_store
from .repositories.pokemon_repository import PokemonRepository, Record

console = Console()

app = typer.Typer(
    name="pokekv",
    help="PokeKV - Pokemon CRUD API on an ordered key-value store",
    add_completion=True,
    rich_markup_mode="rich",
)


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to configuration file")
]


def version_callback(value: bool):
    if value:
        console.print(f"pokekv version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[bool, typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit.")] = False,
):
    """
    PokeKV - Pokemon CRUD API

    Serves /api/pokemons backed by an in-memory or SQLite key-value store.
    """
    pass


def _load_settings(config: Optional[Path]) -> Settings:
    config_file = config or get_default_config_file()
    if config_file.exists():
        return Settings.load_from_yaml(config_file)
    return Settings()


@app.command()
def serve(
    config: ConfigOption = None,
    host: Annotated[Optional[str], typer.Option("--host", "-h", help="Host to bind to")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port to listen on")] = None,
):
    """Start the REST API server."""
    from .api.app import run_server
    
    settings = _load_settings(config)
    if host:
        settings.server.host = host
    if port:
        settings.server.port = port
    
    setup_logging(settings.log.level, settings.log.format, settings.log.file)
    
    if settings.store.backend == "memory":
        console.print("[yellow]Using the in-memory store; records are lost on exit[/yellow]")
    
    console.print(Panel(
        f"[bold green]PokeKV API[/bold green]\n\n"
        f"Listening: [cyan]http://{settings.server.host}:{settings.server.port}[/cyan]\n"
        f"Store: [cyan]{settings.store.backend}[/cyan]\n"
        f"Docs: [cyan]/api/docs[/cyan]",
        border_style="green"
    ))
    run_server(settings.server.host, settings.server.port, settings)


@app.command()
def init(
    config: ConfigOption = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file")] = False,
):
    """Write a default configuration file."""
    config_file = config or get_default_config_file()
    if config_file.exists() and not force:
        console.print(f"[red]Config already exists: {config_file}[/red] (use --force)")
        raise typer.Exit(1)
    
    Settings().save_to_yaml(config_file)
    console.print(f"[green]Wrote {config_file}[/green]")


async def _list_records(settings: Settings) -> list[Record]:
    async with await open_store(settings) as store:
        return await PokemonRepository(store).list()


async def _count_records(settings: Settings) -> int:
    async with await open_store(settings) as store:
        return await PokemonRepository(store).count()


async def _wipe(settings: Settings) -> int:
    async with await open_store(settings) as store:
        return await PokemonRepository(store).delete_all()


@app.command("list")
def list_records(
    config: ConfigOption = None,
):
    """Show every stored pokemon."""
    settings = _load_settings(config)
    try:
        records = asyncio.run(_list_records(settings))
    except KvError as e:
        console.print(f"[red]Store error: {e}[/red]")
        raise typer.Exit(1)
    
    if not records:
        console.print("[yellow]The pokemon collection is empty[/yellow]")
        return
    
    table = Table(title="Pokemons")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Created", style="dim")
    table.add_column("Fields")
    
    for record in records:
        fields = {k: v for k, v in record.items() if k not in ("id", "createdAt")}
        table.add_row(
            str(record.get("id")),
            str(record.get("createdAt", "-")),
            json.dumps(fields, ensure_ascii=False),
        )
    
    console.print(table)


@app.command()
def wipe(
    config: ConfigOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Delete every pokemon and restart IDs at 1."""
    settings = _load_settings(config)
    try:
        if not yes:
            stored = asyncio.run(_count_records(settings))
            if not typer.confirm(f"Delete all {stored} pokemon(s)?", default=False):
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Abort()
        count = asyncio.run(_wipe(settings))
    except (AtomicFailure, KvError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    
    console.print(f"[green]Deleted {count} pokemon(s)[/green]")


if __name__ == "__main__":
    app()
