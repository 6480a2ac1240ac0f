"""Progress display for the analyze command."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..models import ProgressEvent


class AnalysisProgress:
    """Rich progress bar fed by analyzer progress events.

    Usage:
        with AnalysisProgress(console) as progress:
            analyze(path, progress_callback=progress.update)
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def __enter__(self) -> "AnalysisProgress":
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(bar_width=40, complete_style="cyan", finished_style="green"),
            TaskProgressColumn(),
            TextColumn("[dim]{task.fields[current]}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Counting files", total=100, current="")
        return self

    def __exit__(self, *exc) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None

    def update(self, event: ProgressEvent) -> None:
        if self._progress is None or self._task_id is None:
            return
        if event.stage == "counting":
            description = "Counting files"
            if event.total_files is not None:
                description = f"Found {event.total_files} files"
            self._progress.update(self._task_id, description=description, completed=event.progress)
        else:
            self._progress.update(
                self._task_id,
                description=f"Analyzing {event.files_processed}/{event.total_files}",
                completed=event.progress,
                current=escape(event.current_file or ""),
            )
