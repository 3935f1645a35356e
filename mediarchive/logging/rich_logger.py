"""Rich-based archive reporters."""
from __future__ import annotations

import time
from collections import deque
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from ..core.metadata import FileMetadata
from ..core.models import ArchiveResult, ArchiveStats, FileResult

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")

RESULT_STYLES = {
    FileResult.COPIED: ("green", "copied"),
    FileResult.MOVED: ("green", "moved"),
    FileResult.COPIED_UPDATED: ("cyan", "updated"),
    FileResult.MOVED_UPDATED: ("cyan", "updated"),
    FileResult.SOURCE_DELETED: ("magenta", "source deleted"),
    FileResult.DESTINATION_DELETED: ("yellow", "evicted"),
    FileResult.ALREADY_EXISTS: ("dim", "exists"),
    FileResult.INVALID: ("dim", "skipped"),
    FileResult.ERROR: ("red", "error"),
}


def format_size(size: float) -> str:
    """Human readable byte count (1024 based)."""
    for unit in _SIZE_UNITS:
        if abs(size) < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def format_duration(seconds: float) -> str:
    """Human readable duration: ``42.0s``, ``3m 05s`` or ``2h 03m``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0

    def render(self, task: Task) -> Text:
        completed = int(task.completed)
        if completed > self._last_completed:
            self._samples.append((time.time(), completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            if newest_time > oldest_time:
                speed = (newest_completed - oldest_completed) / (newest_time - oldest_time)
                return Text(f"{speed:.1f} f/s", style="magenta")
        return Text("-- f/s", style="magenta")


class RichArchiveReporter:
    """Reports archive results on the console with Rich.

    Every result is printed in verbose mode; otherwise only changes
    (transfers, deletions, errors) are shown.
    """

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    @property
    def console(self) -> Console:
        return self._console

    # --- Progress ---

    def start(self, description: str, total: Optional[int] = None) -> None:
        """Start a progress bar (indeterminate when ``total`` is None)."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=True,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(description, total=total)

    def stop(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task_id = None

    # --- Results ---

    def report(self, result: ArchiveResult) -> None:
        """Print one result and advance the progress bar for file results."""
        if self._progress and self._task_id is not None and result.kind != FileResult.DESTINATION_DELETED:
            self._progress.advance(self._task_id)

        if not self._verbose and result.kind in (FileResult.INVALID, FileResult.ALREADY_EXISTS):
            return

        style, label = RESULT_STYLES[result.kind]
        line = f"[{style}]{label:>14}[/{style}] {result.source_path or result.path}"
        if result.kind == FileResult.DESTINATION_DELETED:
            line = f"[{style}]{label:>14}[/{style}] {result.path} ({format_size(result.size)})"
        elif result.is_transfer and result.destination_path is not None:
            line += f" -> {result.destination_path}"
        if result.message:
            line += f" [dim]({result.message})[/dim]"
        self._console.print(line)

    # --- Messages ---

    def info(self, message: str) -> None:
        self._console.print(f"[blue]ℹ[/blue] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✗[/red] {message}", style="red")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for key, value in config_items.items():
            table.add_row(key, str(value))
        self._console.print(table)

    def print_metadata(self, metadata: FileMetadata) -> None:
        """Print a metadata bag, one row per key in insertion order."""
        table = Table(title="Metadata", show_header=True, header_style="bold")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in metadata.items():
            table.add_row(key, "" if value is None else str(value))
        self._console.print(table)

    def print_stats(self, stats: ArchiveStats, title: str = "Archive Complete") -> None:
        """Print run statistics."""
        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Files", str(stats.total_files))
        table.add_row("Processed", str(stats.processed))
        table.add_row("Copied", str(stats.copied))
        table.add_row("Moved", str(stats.moved))
        table.add_row("Updated", str(stats.updated))
        table.add_row("Source Deleted", str(stats.source_deleted))
        table.add_row("Already Archived", str(stats.duplicated))
        table.add_row("Skipped", str(stats.invalid))
        table.add_row("Errors", str(stats.failed))
        if stats.destination_deleted:
            table.add_row("Evicted", f"{stats.destination_deleted} ({format_size(stats.reclaimed_bytes)})")

        table.add_row("", "")
        table.add_row("Transferred", format_size(stats.transferred_bytes))
        table.add_row("Time Elapsed", format_duration(stats.elapsed_seconds))
        if stats.elapsed_seconds > 0:
            table.add_row("Processing Rate", f"{stats.total_files / stats.elapsed_seconds:.1f} files/sec")

        self._console.print(table)


class QuietArchiveReporter(RichArchiveReporter):
    """Only errors and the final statistics."""

    def start(self, description: str, total: Optional[int] = None) -> None:
        pass

    def report(self, result: ArchiveResult) -> None:
        if result.kind == FileResult.ERROR:
            self.error(f"{result.source_path or result.path}: {result.message}")

    def info(self, message: str) -> None:
        pass

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass
