"""Cache management commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from . import app
from ._common import console, format_file_size, open_stores


@app.command()
def cache_info(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Cache directory"),
):
    """Show cache information and statistics."""
    stats = open_stores(cache_dir).cache.stats()

    console.print("[bold cyan]codestat cache[/bold cyan]")
    console.print()
    console.print(f"Directory: [blue]{escape(stats['cache_dir'])}[/blue]")
    console.print(f"Entries: [yellow]{stats['total_entries']}[/yellow] ({stats['valid_entries']} valid)")
    console.print(f"Size: [yellow]{format_file_size(stats['total_size'])}[/yellow]")


@app.command()
def cache_clear(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Cache directory"),
):
    """Delete all cached results. Statistics and history are kept."""
    removed = open_stores(cache_dir).cache.clear()
    console.print(f"[green]Cache cleared[/green] ({removed} entries removed)")
