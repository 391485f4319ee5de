"""Phase timers for the breathing, body-scan and ERP exercises.

A timer ticks once a second through an ordered list of phases. Ticks come
from a host scheduler: anything with ``schedule_interval(callback, interval)``
returning a handle with ``cancel()``. Kivy's ``Clock`` fits as-is;
``TickScheduler`` drives timers on the calling thread for the CLI and tests.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol, Sequence

from ocdian.display import console, create_timer_progress, print_nudge
from ocdian.encouragement import get_reassurance
from ocdian.models import Phase, PhaseKind, TimerSnapshot, TimerState

log = logging.getLogger(__name__)

TICK_SECONDS = 1

ERP_DURATIONS: tuple[int, ...] = (60, 300, 600)

GET_READY_SECONDS = 1
BREATH_SECONDS = 5
BREATHING_CYCLES = 6
BREATHE_IN = "Breathe In"
BREATHE_OUT = "Breathe Out"

BODY_PART_SECONDS = 10
BODY_PARTS: tuple[str, ...] = (
    "Head & face",
    "Neck & shoulders",
    "Arms & hands",
    "Chest & back",
    "Stomach",
    "Legs & feet",
)

TickCallback = Callable[[TimerSnapshot], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_interval(self, callback: Callable[[float], object], interval: float) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# In-process scheduler
# ---------------------------------------------------------------------------


class _Interval:
    """Handle returned by TickScheduler."""

    def __init__(self, callback: Callable[[float], object], interval: float) -> None:
        self.callback = callback
        self.interval = interval
        self.active = True

    def cancel(self) -> None:
        self.active = False


class TickScheduler:
    """Fires interval callbacks on the calling thread.

    ``step`` delivers one tick to every active callback; ``run`` sleeps one
    second between steps until every handle has been cancelled.
    """

    def __init__(self) -> None:
        self._intervals: list[_Interval] = []

    def schedule_interval(self, callback: Callable[[float], object], interval: float) -> _Interval:
        handle = _Interval(callback, interval)
        self._intervals.append(handle)
        return handle

    @property
    def pending(self) -> int:
        self._intervals = [i for i in self._intervals if i.active]
        return len(self._intervals)

    def step(self) -> None:
        for handle in list(self._intervals):
            if handle.active:
                handle.callback(handle.interval)

    def run(self) -> None:
        while self.pending:
            time.sleep(TICK_SECONDS)
            self.step()


# ---------------------------------------------------------------------------
# Phase timer
# ---------------------------------------------------------------------------


class PhaseTimer:
    """Counts down through a sequence of phases, one tick per second."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handle: Optional[TimerHandle] = None
        self._phases: list[Phase] = []
        self._index = 0
        self._remaining = 0
        self._elapsed = 0
        self._on_tick: Optional[TickCallback] = None
        self._on_complete: Optional[TickCallback] = None
        self.state = TimerState.IDLE

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def phases(self) -> list[Phase]:
        return list(self._phases)

    def snapshot(self) -> TimerSnapshot:
        phase = self._phases[self._index] if self._phases else None
        later = sum(p.seconds for p in self._phases[self._index + 1:])
        return TimerSnapshot(
            state=self.state,
            phase=phase,
            phase_index=self._index,
            phase_count=len(self._phases),
            remaining=self._remaining,
            total_remaining=self._remaining + later,
            elapsed=self._elapsed,
        )

    def start(
        self,
        phases: Sequence[Phase],
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[TickCallback] = None,
    ) -> None:
        """Begin ticking through *phases*, replacing any run in progress."""
        if not phases:
            raise ValueError("A timer needs at least one phase")
        self._cancel_handle()
        self._phases = list(phases)
        self._on_tick = on_tick
        self._on_complete = on_complete
        self._rewind()
        self.state = TimerState.RUNNING
        self._handle = self._scheduler.schedule_interval(self._tick, TICK_SECONDS)
        log.debug("Timer started: %d phase(s), %ds", len(self._phases), self.snapshot().total_remaining)

    def stop(self) -> None:
        """Cancel the tick source. Safe to call when nothing is running."""
        self._cancel_handle()
        if self.state is TimerState.RUNNING:
            self.state = TimerState.IDLE
            log.debug("Timer stopped at %ds elapsed", self._elapsed)

    def reset(self) -> None:
        """Stop and return every counter to its starting value."""
        self._cancel_handle()
        self.state = TimerState.IDLE
        self._rewind()

    def _rewind(self) -> None:
        self._index = 0
        self._remaining = self._phases[0].seconds if self._phases else 0
        self._elapsed = 0

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self, dt: float) -> None:
        if self.state is not TimerState.RUNNING:
            self._cancel_handle()
            return
        self._remaining -= 1
        self._elapsed += 1
        finished = False
        if self._remaining <= 0:
            if self._index + 1 < len(self._phases):
                self._index += 1
                self._remaining = self._phases[self._index].seconds
            else:
                self._remaining = 0
                finished = True
                self._cancel_handle()
                self.state = TimerState.COMPLETED
        snap = self.snapshot()
        # on_tick may restart the timer; completion belongs to the run that finished.
        on_complete = self._on_complete
        if self._on_tick is not None:
            self._on_tick(snap)
        if finished:
            log.debug("Timer completed after %ds", snap.elapsed)
            self._completed(snap, on_complete)

    def _completed(self, snap: TimerSnapshot, on_complete: Optional[TickCallback]) -> None:
        if on_complete is not None:
            on_complete(snap)


# ---------------------------------------------------------------------------
# Exercise modes
# ---------------------------------------------------------------------------


def erp_phases(seconds: int, challenge: str = "") -> list[Phase]:
    return [Phase(kind=PhaseKind.EXPOSURE, label=challenge or "Exposure", seconds=seconds)]


def breathing_phases(cycles: int = BREATHING_CYCLES) -> list[Phase]:
    """Get-ready beat, then *cycles* rounds of inhale and exhale."""
    phases = [Phase(kind=PhaseKind.GET_READY, label="Get ready", seconds=GET_READY_SECONDS)]
    for cycle in range(1, cycles + 1):
        phases.append(Phase(kind=PhaseKind.INHALE, label=BREATHE_IN, seconds=BREATH_SECONDS, cycle=cycle))
        phases.append(Phase(kind=PhaseKind.EXHALE, label=BREATHE_OUT, seconds=BREATH_SECONDS, cycle=cycle))
    return phases


def body_scan_phases(parts: Sequence[str] = BODY_PARTS) -> list[Phase]:
    return [
        Phase(kind=PhaseKind.BODY_PART, label=part, seconds=BODY_PART_SECONDS, cycle=i)
        for i, part in enumerate(parts, 1)
    ]


class ErpTimer(PhaseTimer):
    """Single countdown for an exposure session."""

    def start_exposure(
        self,
        seconds: int,
        challenge: str = "",
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[TickCallback] = None,
    ) -> None:
        self.start(erp_phases(seconds, challenge), on_tick, on_complete)


class BreathingExercise(PhaseTimer):
    """Paced breathing. Fires *signal* once when the last cycle ends."""

    def __init__(
        self,
        scheduler: Scheduler,
        cycles: int = BREATHING_CYCLES,
        signal: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(scheduler)
        self.cycles = cycles
        self._signal = signal

    def begin(
        self,
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[TickCallback] = None,
    ) -> None:
        self.start(breathing_phases(self.cycles), on_tick, on_complete)

    def _completed(self, snap: TimerSnapshot, on_complete: Optional[TickCallback]) -> None:
        if self._signal is not None:
            self._signal()
        super()._completed(snap, on_complete)


class BodyScanExercise(PhaseTimer):
    """Fixed-length hold on each body part in turn."""

    def begin(
        self,
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[TickCallback] = None,
    ) -> None:
        self.start(body_scan_phases(), on_tick, on_complete)


def format_time(seconds: int) -> str:
    """Format a second count as MM:SS."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


# ---------------------------------------------------------------------------
# Terminal runners
# ---------------------------------------------------------------------------


def _bell() -> None:
    console.print("\a", end="")


def _run_in_terminal(timer: PhaseTimer, phases: Sequence[Phase], scheduler: TickScheduler) -> bool:
    """Drive *timer* with a progress bar. Returns True if completed, False if interrupted."""
    progress = create_timer_progress()
    total = sum(p.seconds for p in phases)

    try:
        with progress:
            task = progress.add_task(phases[0].label, total=total)

            def on_tick(snap: TimerSnapshot) -> None:
                label = snap.phase.label if snap.phase else ""
                if snap.phase is not None and snap.phase.kind in (PhaseKind.INHALE, PhaseKind.EXHALE):
                    label = f"{label} ({snap.phase.cycle})"
                progress.update(task, completed=snap.elapsed, description=label)

            timer.start(phases, on_tick=on_tick)
            scheduler.run()
    except KeyboardInterrupt:
        timer.stop()
        console.print("\n[yellow]Stopped early.[/yellow]")
        return False

    return timer.state is TimerState.COMPLETED


def run_erp(seconds: int, challenge: str = "") -> bool:
    """Run an exposure countdown in the terminal."""
    scheduler = TickScheduler()
    completed = _run_in_terminal(ErpTimer(scheduler), erp_phases(seconds, challenge), scheduler)
    if completed:
        _bell()
        print_nudge(get_reassurance())
    return completed


def run_breathing(cycles: int = BREATHING_CYCLES) -> bool:
    """Run a paced breathing exercise in the terminal."""
    scheduler = TickScheduler()
    exercise = BreathingExercise(scheduler, cycles=cycles, signal=_bell)
    completed = _run_in_terminal(exercise, breathing_phases(cycles), scheduler)
    if completed:
        print_nudge(get_reassurance())
    return completed


def run_body_scan() -> bool:
    """Run a body-scan exercise in the terminal."""
    scheduler = TickScheduler()
    completed = _run_in_terminal(BodyScanExercise(scheduler), body_scan_phases(), scheduler)
    if completed:
        _bell()
    return completed
