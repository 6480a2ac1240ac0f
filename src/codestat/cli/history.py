"""History command: past runs of one project, newest first."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from . import app
from ._common import console, format_duration, open_stores


@app.command()
def history(
    path: Path = typer.Argument(Path("."), help="Project root", file_okay=False, dir_okay=True),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Maximum number of runs to list",
        min=1,
        max=50,
    ),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Cache directory"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    List recorded analysis runs for a project.

    [bold cyan]Examples:[/bold cyan]

      codestat history

      codestat history ~/src/project --limit 5 --json
    """
    stores = open_stores(cache_dir)
    project = str(path.expanduser().resolve())
    entries = stores.history.get_recent(project, limit)

    if json_output:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        console.print(
            "[yellow]No history found.[/yellow] "
            "Run [bold]codestat analyze[/bold] first to record a run."
        )
        raise typer.Exit(0)

    now = stores.history.clock()
    table = Table(title=escape(project), show_edge=False, header_style="bold")
    table.add_column("When")
    for header in ("Files", "Lines", "Code", "Comments", "Blank"):
        table.add_column(header, justify="right")
    for entry in entries:
        s = entry.summary
        table.add_row(
            format_duration(now - entry.timestamp),
            f"{s.get('total_files', 0):,}",
            f"{s.get('total_lines', 0):,}",
            f"{s.get('code_lines', 0):,}",
            f"{s.get('comment_lines', 0):,}",
            f"{s.get('blank_lines', 0):,}",
        )
    console.print(table)
