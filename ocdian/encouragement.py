"""Reassuring messages shown after an exposure or relaxation exercise.

Messages are loaded from ``REASSURANCE.md`` at the project root.
The user can freely add, edit, or remove messages in that file.
If the file is missing, a small built-in fallback list is used.
"""

from __future__ import annotations

import random
from pathlib import Path

_FALLBACK_MESSAGES: list[str] = [
    "You're in control. Anxiety will pass, and you are stronger than your fears.",
    "You stayed with the discomfort. That is the work.",
    "Uncertainty is uncomfortable, not dangerous.",
    "A thought is not a fact, and it is not a command.",
    "Every time you resist a compulsion, the next one gets a little easier.",
    "Progress is not a straight line. Today still counts.",
    "Be as kind to yourself as you would be to a friend.",
]


def _load_messages() -> list[str]:
    """Parse bullet points from REASSURANCE.md, falling back to built-in list."""
    md_path = Path(__file__).resolve().parent.parent / "REASSURANCE.md"
    if not md_path.exists():
        return _FALLBACK_MESSAGES

    messages: list[str] = []
    for line in md_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped.startswith("- "):
            msg = stripped[2:].strip()
            if msg:
                messages.append(msg)
    return messages if messages else _FALLBACK_MESSAGES


_MESSAGES: list[str] = _load_messages()


def get_reassurance() -> str:
    """Return a single random reassuring message."""
    return random.choice(_MESSAGES)
