"""Matplotlib charts for the mood insights screen.

All figures use the app's soft green theme.
"""

from __future__ import annotations

import io
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")  # non-interactive backend -- render to image buffers
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from PIL import Image

from ocdian.models import MoodRecord, Trigger

# -- Palette -------------------------------------------------------------
_BG = "#E4F0F2"
_FG = "#263238"
_ACCENT = "#006400"
_FILL = "#A8D5BA"
_GRID = "#B0BEC5"


def _fig_to_pil(fig: Figure, dpi: int = 100) -> Image.Image:
    """Render a matplotlib Figure to a PIL Image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight",
                facecolor=fig.get_facecolor(), edgecolor="none")
    plt.close(fig)
    buf.seek(0)
    return Image.open(buf)


def _style_axes(ax) -> None:
    ax.set_facecolor(_BG)
    ax.tick_params(colors=_FG, labelsize=8)
    ax.spines["bottom"].set_color(_GRID)
    ax.spines["left"].set_color(_GRID)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.yaxis.grid(color=_GRID, linewidth=0.5)


def mood_timeseries(
    records: Sequence[MoodRecord],
    *,
    title: str = "Recent Moods",
    size: tuple[int, int] = (560, 240),
    dpi: int = 100,
) -> Optional[Image.Image]:
    """Line chart of mood scores in check-in order.

    Returns *None* if fewer than two records are provided.
    """
    if len(records) < 2:
        return None

    xs = np.arange(1, len(records) + 1)
    scores = [r.mood_score for r in records]

    fig = Figure(figsize=(size[0] / dpi, size[1] / dpi), dpi=dpi, facecolor=_BG)
    ax = fig.add_subplot(111)
    _style_axes(ax)

    ax.plot(xs, scores, color=_ACCENT, linewidth=2, marker="o",
            markersize=5, markerfacecolor=_FILL, markeredgecolor=_ACCENT)
    ax.fill_between(xs, scores, alpha=0.25, color=_FILL)

    ax.set_ylim(0.5, 5.5)
    ax.set_yticks(range(1, 6))
    ax.set_xticks(xs)
    ax.set_xticklabels([r.timestamp.strftime("%d %b\n%H:%M") for r in records], fontsize=7)
    ax.set_ylabel("Mood", color=_FG, fontsize=9)
    ax.set_title(title, color=_FG, fontsize=11, fontweight="bold")

    return _fig_to_pil(fig, dpi=dpi)


def trigger_bars(
    counts: Sequence[tuple[Trigger, int]],
    *,
    title: str = "Most Common Triggers",
    size: tuple[int, int] = (560, 240),
    dpi: int = 100,
) -> Image.Image:
    """Horizontal bar chart of trigger counts, largest at the top."""
    labels = [t.value for t, _ in counts]
    values = [c for _, c in counts]

    fig = Figure(figsize=(size[0] / dpi, size[1] / dpi), dpi=dpi, facecolor=_BG)
    ax = fig.add_subplot(111)
    _style_axes(ax)

    if counts:
        ypos = np.arange(len(labels))
        ax.barh(ypos, values, color=_FILL, edgecolor=_ACCENT)
        ax.set_yticks(ypos)
        ax.set_yticklabels(labels, color=_FG, fontsize=9)
        ax.invert_yaxis()
        ax.set_xlim(0, max(values) + 1)
    else:
        ax.text(0.5, 0.5, "No triggers yet", ha="center", va="center",
                color=_FG, transform=ax.transAxes)
        ax.set_yticks([])

    ax.set_title(title, color=_FG, fontsize=11, fontweight="bold")

    return _fig_to_pil(fig, dpi=dpi)
