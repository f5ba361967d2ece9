"""Console rendering and progress helpers for mediadrop CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional
import time

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .models import DownloadLinkRecord, StagedFile, UploadMetadataRecord, UploadSession


console = Console()


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]mediadrop[/bold green]",
        subtitle="[dim]media upload CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_link(link: DownloadLinkRecord, base_url: Optional[str] = None) -> None:
    """Render the issued download link."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")
    table.add_row("Token", link.token)
    table.add_row("Expires", link.expires_at.isoformat())
    table.add_row("Share", link.share_url(base_url))
    console.print(Panel(table, title="[bold green]Download link[/bold green]", border_style="green"))


class CommitProgressDisplay:
    """Event-based console display for a batch commit."""

    def __init__(self):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=36),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            expand=False,
            console=console,
        )
        self._task_id: Optional[TaskID] = None
        self._started_at = 0.0

    def attach(self, events) -> None:
        """Subscribe to orchestrator events."""
        events.on("commit_start", self.on_commit_start)
        events.on("file_start", self.on_file_start)
        events.on("file_complete", self.on_file_complete)
        events.on("commit_complete", self.on_commit_complete)
        events.on("commit_failed", self.on_commit_failed)

    def on_commit_start(self, session: UploadSession) -> None:
        self._started_at = time.monotonic()
        self._progress.start()
        self._task_id = self._progress.add_task(
            "commit",
            label=f"Uploading {_human_size(session.total_bytes)}",
            total=len(session.staged_files),
        )

    def on_file_start(self, staged: StagedFile) -> None:
        if self._task_id is not None:
            self._progress.update(self._task_id, label=staged.name[:60])

    def on_file_complete(self, staged: StagedFile, record: UploadMetadataRecord) -> None:
        if self._task_id is not None:
            self._progress.advance(self._task_id)
        self._progress.console.print(
            f"[green]DONE[/green] {staged.name} ({_human_size(staged.size_bytes)}) -> [dim]{record.file_path}[/dim]"
        )

    def on_commit_complete(self, link: DownloadLinkRecord) -> None:
        self._progress.stop()
        elapsed = time.monotonic() - self._started_at
        console.print(f"[green]Committed[/green] in {elapsed:.1f}s")

    def on_commit_failed(self, error: Exception) -> None:
        self._progress.stop()
        console.print(f"[red]FAIL[/red] {error}")
