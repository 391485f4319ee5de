"""In-memory mood check-ins for the current session."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ocdian.models import MoodRecord, Trigger

log = logging.getLogger(__name__)

Observer = Callable[["MoodStore"], None]


class MoodStore:
    """Append-only mood history plus the check-in form's transient state."""

    def __init__(self) -> None:
        self._records: list[MoodRecord] = []
        self._observers: list[Observer] = []
        self.selected_triggers: set[Trigger] = set()
        self.note = ""

    def subscribe(self, callback: Observer) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def unsubscribe(self, callback: Observer) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def toggle_trigger(self, trigger: Trigger) -> bool:
        """Flip a trigger in the current selection. Returns True if now selected."""
        if trigger in self.selected_triggers:
            self.selected_triggers.discard(trigger)
            return False
        self.selected_triggers.add(trigger)
        return True

    def record_mood(
        self,
        score: int,
        triggers: Optional[Iterable[Trigger]] = None,
        note: Optional[str] = None,
    ) -> MoodRecord:
        """Append a check-in and clear the selection and note.

        Falls back to the transient selection/note when *triggers* or *note*
        are not given. Raises ``ValidationError`` if *score* is outside 1-5.
        """
        chosen = self.selected_triggers if triggers is None else triggers
        text = self.note if note is None else note
        record = MoodRecord(mood_score=score, triggers=tuple(chosen), note=text.strip())
        self._records.append(record)
        self.selected_triggers = set()
        self.note = ""
        log.debug("Recorded mood %d with %d trigger(s)", record.mood_score, len(record.triggers))
        for callback in list(self._observers):
            callback(self)
        return record

    def history(self) -> list[MoodRecord]:
        """All check-ins, oldest first."""
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)
