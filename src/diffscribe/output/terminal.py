"""Rich terminal reports: change statistics, export results, related history."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from diffscribe.git.diff_parser import count_changes, group_by_extension, sort_by_change_size
from diffscribe.git.models import CommitMeta, DiffFile, FileStatus
from diffscribe.history import RelatedAnalysis

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.MODIFIED: "bold yellow",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
    FileStatus.COPIED: "bold blue",
}


def _status_pill(status: FileStatus) -> Text:
    return Text(status.value, style=_STATUS_STYLE.get(status, ""))


def render_stats(
    meta: CommitMeta,
    files: Sequence[DiffFile],
    *,
    by_extension: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print *files* ranked by change size, or grouped per extension."""
    console = console or Console()
    label = meta.title if meta.is_staged else f"{meta.short_hash} - {meta.title}"

    if not files:
        console.print(f"[dim]{label}: no files changed.[/dim]")
        return

    if by_extension:
        table = Table(title=label, title_style="bold", border_style="dim")
        table.add_column("Extension", style="cyan")
        table.add_column("Files", justify="right")
        table.add_column("Added", justify="right", style="green")
        table.add_column("Removed", justify="right", style="red")
        groups = group_by_extension(files)
        ranked = sorted(
            groups.items(),
            key=lambda item: sum(f.change_size for f in item[1]),
            reverse=True,
        )
        for ext, group in ranked:
            totals = count_changes(group)
            table.add_row(
                f".{ext}" if ext else "(none)",
                str(len(group)),
                f"+{totals.additions}",
                f"-{totals.deletions}",
            )
    else:
        table = Table(title=label, title_style="bold", border_style="dim")
        table.add_column("Status", justify="center", width=10)
        table.add_column("File", style="magenta")
        table.add_column("Hunks", justify="right")
        table.add_column("Added", justify="right", style="green")
        table.add_column("Removed", justify="right", style="red")
        for f in sort_by_change_size(files):
            table.add_row(
                _status_pill(f.status),
                f.path,
                str(len(f.hunks)),
                f"+{f.additions}",
                f"-{f.deletions}",
            )

    console.print(table)
    totals = count_changes(files)
    console.print(
        f"[dim]Files:[/dim] {len(files)}  "
        f"[dim]Lines:[/dim] [green]+{totals.additions}[/green] [red]-{totals.deletions}[/red]"
    )


def render_export_summary(
    written: Sequence[Path],
    skipped: Sequence[str],
    *,
    printed: int = 0,
    console: Optional[Console] = None,
) -> None:
    console = console or Console(stderr=True)
    for path in written:
        console.print(f"[green]✓[/green] Wrote {path}")
    for label in skipped:
        console.print(f"[yellow]⚠[/yellow]  Skipped {label}: empty diff")
    if not written and not printed:
        console.print("[dim]Nothing to export.[/dim]")


def _when(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


def render_related(
    commit: str,
    related: List[RelatedAnalysis],
    summary: str,
    *,
    console: Optional[Console] = None,
) -> None:
    console = console or Console()
    console.print(f"[bold]{summary}[/bold]")
    if not related:
        return
    table = Table(title=f"Related to {commit}", title_style="bold", border_style="dim")
    table.add_column("Commit", style="cyan")
    table.add_column("When")
    table.add_column("Author")
    table.add_column("Title", min_width=20)
    table.add_column("Risks", justify="right")
    table.add_column("Relevance", justify="right", style="green")
    for item in related:
        record = item.record
        table.add_row(
            record.short_hash,
            _when(record.timestamp),
            record.author or "-",
            record.title,
            str(len(record.risk_indicators)),
            f"{item.relevance:.2f}",
        )
    console.print(table)
