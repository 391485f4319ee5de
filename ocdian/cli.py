"""OCDian CLI -- journal, relaxation and ERP tools for managing OCD."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

import typer

from ocdian import config as cfg
from ocdian import db, display, insights, timer
from ocdian.coping import COPING_TIPS, match_category, match_strategies
from ocdian.journal import JournalStore
from ocdian.models import ErpSessionCreate, Trigger
from ocdian.mood import MoodStore

app = typer.Typer(
    name="ocdian",
    help="Track obsessions, calm down, and practise exposure -- one step at a time.",
    no_args_is_help=True,
)

_ERP_MINUTES = {1: 60, 5: 300, 10: 600}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """OCDian: a personal OCD self-management toolkit."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _conn() -> sqlite3.Connection:
    """Get a database connection (convenience wrapper)."""
    return db.get_connection()


def _journal(conn: sqlite3.Connection) -> JournalStore:
    store = JournalStore(conn)
    store.load()
    return store


def _prompt_rating(label: str, low: int, high: int) -> int:
    """Ask for a whole number in [low, high] until one is given."""
    while True:
        raw = typer.prompt(f"{label} ({low}-{high})")
        try:
            val = int(raw)
            if low <= val <= high:
                return val
        except ValueError:
            pass
        display.print_warning(f"  Please enter a number from {low} to {high}.")


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------


@app.command(name="log")
def log_entry(
    obsession: str = typer.Argument(..., help="The obsession or intrusive thought"),
) -> None:
    """Log an obsession."""
    conn = _conn()
    store = _journal(conn)
    entry = store.add_entry(obsession)
    if entry is None:
        display.print_warning("Nothing to log.")
        conn.close()
        raise typer.Exit(1)
    display.print_success(f"Logged #{len(store) - 1} ({entry.id[:8]}): {entry.obsession}")
    category = match_category(entry.obsession)
    if category is not None:
        display.print_strategies(category, match_strategies(entry.obsession))
    conn.close()


@app.command()
def compulsion(
    entry_id: str = typer.Argument(..., help="Entry id (or its first characters)"),
    text: str = typer.Argument(..., help="The compulsion you performed"),
) -> None:
    """Attach a compulsion to a logged obsession."""
    conn = _conn()
    store = _journal(conn)
    matches = [e for e in store.entries if e.id.startswith(entry_id)] if entry_id else []
    if len(matches) != 1:
        display.print_warning(f"Entry {entry_id} not found.")
        conn.close()
        raise typer.Exit(1)
    updated = store.attach_compulsion(matches[0].id, text)
    if updated is None:
        display.print_warning("Nothing to attach.")
        conn.close()
        raise typer.Exit(1)
    display.print_success(f"Compulsion noted for: {updated.obsession}")
    conn.close()


@app.command()
def entries() -> None:
    """List your journal entries."""
    conn = _conn()
    store = _journal(conn)
    display.print_entries(store.entries)
    conn.close()


@app.command()
def delete(
    index: int = typer.Argument(..., help="Position of the entry, as shown by `entries`"),
) -> None:
    """Delete one journal entry."""
    conn = _conn()
    store = _journal(conn)
    removed = store.delete_entry(index)
    if removed is None:
        display.print_warning(f"No entry at position {index}.")
        conn.close()
        raise typer.Exit(1)
    display.print_success(f"Deleted: {removed.obsession}")
    conn.close()


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every journal entry."""
    if not yes:
        typer.confirm("Delete all journal entries?", default=False, abort=True)
    conn = _conn()
    store = _journal(conn)
    count = store.delete_all()
    display.print_success(f"Deleted {count} entr{'ies' if count != 1 else 'y'}.")
    conn.close()


# ---------------------------------------------------------------------------
# Coping
# ---------------------------------------------------------------------------


@app.command()
def strategies(
    text: str = typer.Argument(..., help="Describe what you are struggling with"),
) -> None:
    """Suggest coping strategies for a worry."""
    category = match_category(text)
    if category is None:
        display.print_info("No matching strategies. Try `ocdian tips` for general help.")
        return
    display.print_strategies(category, match_strategies(text))


@app.command()
def tips() -> None:
    """Show general coping tips."""
    display.print_tips(COPING_TIPS)


# ---------------------------------------------------------------------------
# Mood check-in
# ---------------------------------------------------------------------------


def _parse_triggers(raw: str) -> list[Trigger]:
    chosen: list[Trigger] = []
    by_name = {t.value.lower(): t for t in Trigger}
    for part in raw.split(","):
        name = part.strip().lower()
        if not name:
            continue
        if name.isdigit() and 1 <= int(name) <= len(Trigger):
            chosen.append(list(Trigger)[int(name) - 1])
        elif name in by_name:
            chosen.append(by_name[name])
        else:
            display.print_warning(f"  Unknown trigger '{part.strip()}' ignored.")
    return chosen


@app.command()
def mood(
    chart: Optional[Path] = typer.Option(
        None, "--chart", help="Save mood and trigger charts to this PNG path prefix",
    ),
) -> None:
    """Check in with your mood and see what triggers it (this session only)."""
    from ocdian.charts import mood_timeseries, trigger_bars

    store = MoodStore()
    options = ", ".join(f"{i}={t.value}" for i, t in enumerate(Trigger, 1))

    while True:
        score = _prompt_rating("Mood", 1, 5)
        raw = typer.prompt(f"Triggers ({options}), comma separated", default="", show_default=False)
        for trigger in _parse_triggers(raw):
            store.selected_triggers.add(trigger)
        store.note = typer.prompt("Note", default="", show_default=False)
        store.record_mood(score)
        display.print_success("Check-in saved.")
        if not typer.confirm("Another check-in?", default=False):
            break

    history = store.history()
    display.print_mood_history(insights.recent_mood_series(history))
    display.print_trigger_counts(insights.most_common_triggers(history))
    avg = insights.average_mood(history)
    if avg is not None:
        display.print_info(f"Average mood: {avg:.1f}/5")

    if chart is not None:
        series = mood_timeseries(insights.recent_mood_series(history))
        if series is not None:
            path = chart.with_name(f"{chart.stem}-moods.png")
            series.save(path)
            display.print_info(f"Saved {path}")
        path = chart.with_name(f"{chart.stem}-triggers.png")
        trigger_bars(insights.most_common_triggers(history)).save(path)
        display.print_info(f"Saved {path}")


# ---------------------------------------------------------------------------
# Relaxation
# ---------------------------------------------------------------------------


@app.command()
def breathe(
    cycles: Optional[int] = typer.Option(
        None, "--cycles", "-c", min=1, max=12, help="Inhale/exhale cycles (default from config)",
    ),
) -> None:
    """Paced breathing: breathe in for 5 seconds, out for 5."""
    n = cycles if cycles is not None else cfg.load_config().breathing_cycles
    display.print_info(f"Breathing: {n} cycles. Get ready...")
    if timer.run_breathing(cycles=n):
        display.print_success("Breathing exercise complete.")


@app.command(name="body-scan")
def body_scan() -> None:
    """Body scan: rest your attention on each part of the body in turn."""
    display.print_info(f"Body scan: {len(timer.BODY_PARTS)} areas, {timer.BODY_PART_SECONDS}s each.")
    if timer.run_body_scan():
        display.print_success("Body scan complete.")


# ---------------------------------------------------------------------------
# ERP
# ---------------------------------------------------------------------------


@app.command()
def erp(
    minutes: Optional[int] = typer.Option(
        None, "--minutes", "-m", help="Exposure length: 1, 5 or 10 minutes (default from config)",
    ),
    challenge: str = typer.Option("", "--challenge", help="What you are exposing yourself to"),
) -> None:
    """Exposure and response prevention: sit with a trigger without acting on it."""
    if minutes is None:
        seconds = cfg.load_config().erp_seconds
    elif minutes in _ERP_MINUTES:
        seconds = _ERP_MINUTES[minutes]
    else:
        display.print_warning("Choose 1, 5 or 10 minutes.")
        raise typer.Exit(1)

    if not challenge:
        challenge = typer.prompt("Exposure challenge", default="", show_default=False).strip()
    before = _prompt_rating("Anxiety before exposure", 1, 10)

    display.print_info(f"Exposure for {timer.format_time(seconds)}. Notice the urge; do not act on it.")
    if not timer.run_erp(seconds, challenge):
        return

    after = _prompt_rating("Anxiety after exposure", 1, 10)
    conn = _conn()
    session = db.log_erp_session(
        conn,
        ErpSessionCreate(
            challenge=challenge,
            duration_seconds=seconds,
            anxiety_before=before,
            anxiety_after=after,
        ),
    )
    display.print_success(f"Session logged. Calmness meter: {session.calmness}/10")
    conn.close()


@app.command(name="erp-history")
def erp_history(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of sessions to show"),
) -> None:
    """View past exposure sessions."""
    conn = _conn()
    display.print_erp_sessions(db.list_erp_sessions(conn, limit=limit))
    conn.close()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command()
def config(
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Set a custom database file path"),
    erp_minutes: Optional[int] = typer.Option(None, "--erp-minutes", help="Default exposure length: 1, 5 or 10"),
    cycles: Optional[int] = typer.Option(None, "--cycles", min=1, max=12, help="Default breathing cycles"),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local DB"),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure where your data is stored and exercise defaults."""
    if db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Database path set to: {result.db_path}")
    elif erp_minutes is not None:
        if erp_minutes not in _ERP_MINUTES:
            display.print_warning("Choose 1, 5 or 10 minutes.")
            raise typer.Exit(1)
        cfg.set_erp_seconds(_ERP_MINUTES[erp_minutes])
        display.print_success(f"Default exposure set to {erp_minutes} min.")
    elif cycles is not None:
        cfg.set_breathing_cycles(cycles)
        display.print_success(f"Breathing exercises will run {cycles} cycles.")
    elif reset:
        cfg.reset_db_path()
        display.print_success("Reset to default local database.")
    elif show:
        current = cfg.load_config()
        resolved = cfg.get_db_path()
        if current.db_path:
            display.print_info(f"Database: {current.db_path}")
        else:
            display.print_info(f"Database: {resolved} (default)")
        display.print_info(f"Exposure: {current.erp_seconds // 60} min")
        display.print_info(f"Breathing cycles: {current.breathing_cycles}")
    else:
        display.print_info("Use --db-path, --erp-minutes, --cycles, --reset, or --show.")
