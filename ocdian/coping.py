"""Coping strategies for common OCD themes, plus general coping tips.

``match_strategies`` is a blunt lookup: the first category whose label
appears anywhere in the text wins, so the order of ``COPING_STRATEGIES``
matters.
"""

from __future__ import annotations

# Category label -> strategies. Checked in this order.
COPING_STRATEGIES: dict[str, list[str]] = {
    "Fear of contamination": [
        "Delay washing by five minutes, then try ten next time.",
        "Touch a 'contaminated' object and let the anxiety rise and fall without washing.",
        "Remind yourself that feeling dirty is not the same as being in danger.",
    ],
    "Checking": [
        "Check once, say out loud what you saw, then walk away.",
        "Take a photo instead of going back to check again.",
        "Notice the urge to re-check and rate it, without acting on it.",
    ],
    "Intrusive thoughts": [
        "Label it: 'This is an intrusive thought, not a wish or a plan.'",
        "Let the thought stay without arguing with it or pushing it away.",
        "Return your attention to what you were doing before the thought arrived.",
    ],
    "Symmetry": [
        "Leave one item slightly out of place and sit with the discomfort.",
        "Set a timer and stop arranging when it rings, even if it feels unfinished.",
    ],
    "Fear of harm": [
        "Practise being near the feared object while keeping your routine.",
        "Write the feared scenario down and read it until it feels less charged.",
        "Skip seeking reassurance from others for this thought today.",
    ],
    "Counting": [
        "Deliberately stop on a 'wrong' number.",
        "Replace the count with a slow breath and notice what happens to the urge.",
    ],
}

COPING_TIPS: list[tuple[str, str]] = [
    (
        "Deep Breathing Exercise",
        "Inhale for 4 seconds, hold for 4 seconds, exhale for 4 seconds.",
    ),
    (
        "Mindfulness Tip",
        "Focus on the present moment and observe your surroundings without judgment.",
    ),
    (
        "Reassuring Message",
        "You're in control. Anxiety will pass, and you are stronger than your fears.",
    ),
]


def match_category(text: str) -> str | None:
    """Return the first category label found in *text* (case-insensitive)."""
    lowered = text.lower()
    for category in COPING_STRATEGIES:
        if category.lower() in lowered:
            return category
    return None


def match_strategies(text: str) -> list[str]:
    """Strategies for the first category mentioned in *text*, or an empty list."""
    category = match_category(text)
    if category is None:
        return []
    return list(COPING_STRATEGIES[category])
