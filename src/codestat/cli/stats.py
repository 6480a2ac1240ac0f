"""Usage statistics command."""

import json
from pathlib import Path
from typing import Optional

import typer

from . import app
from ._common import console, open_stores


@app.command()
def stats(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Cache directory"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """Show cumulative usage statistics and milestones."""
    user_stats = open_stores(cache_dir).stats.get()

    if json_output:
        print(json.dumps(user_stats.to_dict(), indent=2))
        return

    console.print("[bold cyan]codestat usage[/bold cyan]")
    console.print()
    console.print(f"Lines analyzed:    [yellow]{user_stats.total_lines_analyzed:,}[/yellow]")
    console.print(f"Files analyzed:    [yellow]{user_stats.total_files_analyzed:,}[/yellow]")
    console.print(f"Projects analyzed: [yellow]{user_stats.total_projects_analyzed:,}[/yellow]")
    console.print(f"Analyses:          [yellow]{user_stats.analyses_completed:,}[/yellow]")
    console.print(f"Cache hits:        [yellow]{user_stats.cache_hits:,}[/yellow]")

    if user_stats.milestones:
        console.print()
        console.print("[bold]Milestones[/bold]")
        for milestone in user_stats.milestones[-10:]:
            console.print(f"  [green]✓[/green] {milestone.description}")
