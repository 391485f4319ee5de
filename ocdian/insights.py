"""Summaries derived from the mood history."""

from __future__ import annotations

from collections import Counter
from typing import Optional, Sequence

from ocdian.models import MoodRecord, Trigger

RECENT_MOODS = 7


def most_common_triggers(history: Sequence[MoodRecord]) -> list[tuple[Trigger, int]]:
    """Count triggers across all check-ins, most frequent first.

    Equal counts keep the order in which the triggers first appeared.
    """
    counts: Counter[Trigger] = Counter()
    for record in history:
        counts.update(record.triggers)
    # Counter.most_common sorts stably, so ties stay in first-seen order.
    return counts.most_common()


def recent_mood_series(history: Sequence[MoodRecord], n: int = RECENT_MOODS) -> list[MoodRecord]:
    """The last *n* check-ins, oldest first."""
    if n <= 0:
        return []
    return list(history[-n:])


def average_mood(history: Sequence[MoodRecord]) -> Optional[float]:
    if not history:
        return None
    return sum(r.mood_score for r in history) / len(history)
