"""Analysis commands: whole tree and single file."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..api import analyze as run_analysis, analyze_file as run_file_analysis
from ..exceptions import AnalysisError
from ..logging_config import setup_logging
from ..models import AnalysisReport, AnalysisResult, Comparison
from . import app
from ._common import console, format_file_size, resolve_options
from .progress import AnalysisProgress

LARGEST_FILES_SHOWN = 10


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Directory to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    ext: Optional[List[str]] = typer.Option(
        None,
        "--ext",
        "-e",
        help="File extension to include (repeatable, e.g. -e py -e js)",
    ),
    ignore: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Ignore pattern matched against relative paths (repeatable)",
    ),
    max_file_size: Optional[str] = typer.Option(
        None,
        "--max-file-size",
        help="Skip files larger than this (e.g. 10MB)",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        help="Maximum directory depth",
        min=0,
    ),
    show_hidden: Optional[bool] = typer.Option(
        None,
        "--show-hidden/--no-show-hidden",
        help="Include dot-prefixed files and directories",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Ignore cached results and do not write a new cache entry",
    ),
    no_stats: bool = typer.Option(
        False,
        "--no-stats",
        help="Do not update usage statistics or history",
    ),
    cache_dir: Optional[Path] = typer.Option(
        None,
        "--cache-dir",
        help="Directory for cache, statistics and history",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Report every skipped file",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
):
    """
    Count code, comment and blank lines under a directory.

    [bold cyan]Examples:[/bold cyan]

      codestat analyze

      codestat analyze src -e py -e pyx

      codestat analyze . --json --no-cache
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        overrides = dict(
            extensions=ext or None,
            ignore_patterns=ignore or None,
            max_file_size=max_file_size,
            max_recursion_depth=max_depth,
            show_hidden=show_hidden,
            use_cache=False if no_cache else None,
            track_stats=False if no_stats else None,
            cache_dir=str(cache_dir) if cache_dir else None,
            verbose=verbose or None,
        )
        options = resolve_options(config, **overrides)

        if json_output or quiet:
            report = run_analysis(path, options=options)
        else:
            with AnalysisProgress(console) as progress:
                report = run_analysis(path, options=options, progress_callback=progress.update)

        if json_output:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            _output_rich(report)

    except AnalysisError as e:
        logger.error(str(e))
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)


@app.command("file")
def analyze_single_file(
    path: Path = typer.Argument(
        ...,
        help="File to analyze",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    max_file_size: Optional[str] = typer.Option(
        None,
        "--max-file-size",
        help="Refuse files larger than this (e.g. 10MB)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Count code, comment and blank lines in one file."""
    logger = setup_logging(verbose=verbose)

    try:
        options = resolve_options(max_file_size=max_file_size, verbose=verbose or None)
        result = run_file_analysis(path, options=options)
    except AnalysisError as e:
        logger.error(str(e))
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_totals(result, title=escape(path.name))


# ---------------------------------------------------------------------------
# Rich output
# ---------------------------------------------------------------------------


def _output_rich(report: AnalysisReport) -> None:
    result = report.result
    source = " [dim](cached)[/dim]" if report.from_cache else ""
    if report.cancelled:
        console.print("[yellow]Analysis cancelled, results are partial[/yellow]")

    _print_totals(result, title=f"{escape(result.root_path)}{source}")

    if result.by_file_type:
        table = Table(title="By file type", show_edge=False, header_style="bold")
        table.add_column("Type")
        for header in ("Files", "Lines", "Code", "Comments", "Blank"):
            table.add_column(header, justify="right")
        ranked = sorted(result.by_file_type.items(), key=lambda kv: kv[1].total_lines, reverse=True)
        for ext, stats in ranked:
            table.add_row(
                ext,
                f"{stats.files:,}",
                f"{stats.total_lines:,}",
                f"{stats.code_lines:,}",
                f"{stats.comment_lines:,}",
                f"{stats.blank_lines:,}",
            )
        console.print(table)

    if result.largest_files:
        table = Table(title="Largest files", show_edge=False, header_style="bold")
        table.add_column("File")
        table.add_column("Lines", justify="right")
        table.add_column("Size", justify="right")
        for f in result.largest_files[:LARGEST_FILES_SHOWN]:
            table.add_row(escape(f.path), f"{f.lines:,}", format_file_size(f.size))
        console.print(table)

    skipped = result.skipped_files
    if skipped.total:
        parts = [f"{name.replace('_', ' ')}: {count}" for name, count in skipped.to_dict().items() if count]
        console.print(f"[yellow]Skipped {skipped.total} files[/yellow] ({', '.join(parts)})")

    for error in report.errors:
        console.print(f"[yellow]Warning:[/yellow] {escape(error.message)}")

    for milestone in report.milestones:
        console.print(f"[bold green]Milestone:[/bold green] {milestone.description}")

    if report.comparison is not None and report.comparison.has_previous:
        _print_comparison(report.comparison)


def _print_totals(result: AnalysisResult, title: str) -> None:
    console.print()
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print(
        f"  {result.total_files:,} files, {result.total_directories:,} directories, "
        f"{result.total_lines:,} lines"
    )
    console.print(
        f"  [green]{result.code_lines:,} code[/green]  "
        f"[blue]{result.comment_lines:,} comments[/blue]  "
        f"[dim]{result.blank_lines:,} blank[/dim]"
    )
    console.print()


def _print_comparison(comparison: Comparison) -> None:
    console.print("[bold]Since previous run:[/bold]")
    for metric, change in comparison.changes.items():
        if change == 0:
            continue
        color = "green" if change > 0 else "red"
        pct = comparison.percentage_changes.get(metric)
        pct_text = f" ({pct}%)" if pct is not None else ""
        console.print(f"  {metric.replace('_', ' ')}: [{color}]{change:+,}[/{color}]{pct_text}")
    for ext, change in comparison.file_type_changes.items():
        if change.status != "changed":
            console.print(f"  {ext}: [dim]{change.status}[/dim] ({change.files:+} files)")
