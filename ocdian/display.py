"""Rich terminal formatting helpers."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from ocdian.models import ErpSession, JournalEntry, MoodRecord, Trigger

console = Console()

_MOOD_FACE: dict[int, str] = {1: ":(", 2: ":/", 3: ":|", 4: ":)", 5: ":D"}


def print_entries(entries: Sequence[JournalEntry], title: str = "Journal") -> None:
    """Print journal entries with their position, which `delete` takes."""
    if not entries:
        console.print(Panel("No entries yet.", title=title, border_style="dim"))
        return

    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("#", width=3)
    table.add_column("id", style="dim", width=8)
    table.add_column("obsession")
    table.add_column("compulsion", style="cyan")

    for i, entry in enumerate(entries):
        table.add_row(str(i), entry.id[:8], entry.obsession, entry.compulsion or "-")

    console.print(Panel(table, title=title, border_style="green"))


def print_strategies(category: str, strategies: Sequence[str]) -> None:
    """Print coping strategies for a matched category."""
    body = "\n".join(f"- {s}" for s in strategies)
    console.print(Panel(body, title=f"Coping: {category}", border_style="green"))


def print_tips(tips: Sequence[tuple[str, str]]) -> None:
    """Print the general coping tips."""
    body = "\n\n".join(f"[bold]{name}[/bold]: {text}" for name, text in tips)
    console.print(Panel(body, title="Coping Strategies", border_style="green", padding=(1, 2)))


def print_mood_history(records: Sequence[MoodRecord], title: str = "Recent Moods") -> None:
    """Print mood check-ins, oldest first."""
    if not records:
        console.print(Panel("No check-ins yet.", title=title, border_style="dim"))
        return

    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("when", style="dim")
    table.add_column("mood", width=6)
    table.add_column("triggers")
    table.add_column("note")

    for r in records:
        table.add_row(
            r.timestamp.strftime("%H:%M"),
            f"{r.mood_score} {_MOOD_FACE[r.mood_score]}",
            ", ".join(t.value for t in r.triggers) or "-",
            r.note or "",
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_trigger_counts(counts: Sequence[tuple[Trigger, int]]) -> None:
    """Print trigger frequencies as a simple bar list."""
    if not counts:
        console.print(Panel("No triggers recorded.", title="Triggers", border_style="dim"))
        return
    width = max(c for _, c in counts)
    lines = [f"{t.value:<12} {'#' * c}{' ' * (width - c)}  {c}" for t, c in counts]
    console.print(Panel("\n".join(lines), title="Most Common Triggers", border_style="blue"))


def print_erp_sessions(sessions: Sequence[ErpSession]) -> None:
    """Print logged exposure sessions."""
    if not sessions:
        console.print(Panel("No exposure sessions logged.", title="ERP", border_style="dim"))
        return

    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("when", style="dim")
    table.add_column("challenge")
    table.add_column("min", width=4)
    table.add_column("before", width=6)
    table.add_column("after", width=6)
    table.add_column("calm", width=5)

    for s in sessions:
        table.add_row(
            s.completed_at.strftime("%Y-%m-%d %H:%M"),
            s.challenge or "-",
            str(s.duration_seconds // 60),
            str(s.anxiety_before),
            "-" if s.anxiety_after is None else str(s.anxiety_after),
            "-" if s.calmness is None else f"{s.calmness}/10",
        )

    console.print(Panel(table, title="ERP Sessions", border_style="blue"))


def print_nudge(message: str) -> None:
    """Print a reassuring message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def create_timer_progress() -> Progress:
    """Create a Rich progress bar for exercise timers."""
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=console,
    )
