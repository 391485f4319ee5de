"""Tests for the timer module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from ocdian.models import PhaseKind, TimerSnapshot, TimerState
from ocdian.timer import (
    BODY_PARTS,
    BodyScanExercise,
    BreathingExercise,
    ErpTimer,
    PhaseTimer,
    TickScheduler,
    body_scan_phases,
    breathing_phases,
    erp_phases,
    format_time,
    run_body_scan,
    run_breathing,
    run_erp,
)


def _drain(scheduler: TickScheduler, limit: int = 10_000) -> int:
    """Step until nothing is scheduled. Returns the number of steps."""
    steps = 0
    while scheduler.pending and steps < limit:
        scheduler.step()
        steps += 1
    return steps


class TestTickScheduler:
    def test_step_calls_active(self) -> None:
        scheduler = TickScheduler()
        calls: list[float] = []
        scheduler.schedule_interval(calls.append, 1)
        scheduler.step()
        scheduler.step()
        assert calls == [1, 1]

    def test_cancelled_not_called(self) -> None:
        scheduler = TickScheduler()
        calls: list[float] = []
        handle = scheduler.schedule_interval(calls.append, 1)
        handle.cancel()
        scheduler.step()
        assert calls == []
        assert scheduler.pending == 0

    @patch("ocdian.timer.time.sleep")
    def test_run_sleeps_once_per_tick(self, mock_sleep) -> None:
        scheduler = TickScheduler()
        timer = ErpTimer(scheduler)
        timer.start_exposure(5)
        scheduler.run()
        assert mock_sleep.call_count == 5
        assert timer.state is TimerState.COMPLETED


class TestErpTimer:
    def test_300_ticks_to_zero(self) -> None:
        scheduler = TickScheduler()
        timer = ErpTimer(scheduler)
        ticks: list[TimerSnapshot] = []
        done = MagicMock()
        timer.start_exposure(300, on_tick=ticks.append, on_complete=done)

        steps = _drain(scheduler)

        assert steps == 300
        assert len(ticks) == 300
        assert ticks[-1].remaining == 0
        assert all(t.remaining >= 0 for t in ticks)
        assert [t.remaining for t in ticks[:3]] == [299, 298, 297]
        assert timer.state is TimerState.COMPLETED
        done.assert_called_once()

    def test_challenge_label(self) -> None:
        timer = ErpTimer(TickScheduler())
        timer.start_exposure(60, challenge="Touch the bin lid")
        assert timer.snapshot().phase.label == "Touch the bin lid"

    def test_extra_steps_after_completion_do_nothing(self) -> None:
        scheduler = TickScheduler()
        timer = ErpTimer(scheduler)
        ticks: list[TimerSnapshot] = []
        timer.start_exposure(2, on_tick=ticks.append)
        for _ in range(5):
            scheduler.step()
        assert len(ticks) == 2
        assert timer.snapshot().remaining == 0


class TestBreathingExercise:
    def test_phase_layout(self) -> None:
        phases = breathing_phases(6)
        assert phases[0].kind is PhaseKind.GET_READY
        assert phases[0].seconds == 1
        assert len(phases) == 1 + 6 * 2
        assert [p.kind for p in phases[1:3]] == [PhaseKind.INHALE, PhaseKind.EXHALE]
        assert all(p.seconds == 5 for p in phases[1:])
        assert phases[-1].cycle == 6

    def test_61_ticks_and_one_signal(self) -> None:
        scheduler = TickScheduler()
        signal = MagicMock()
        exercise = BreathingExercise(scheduler, cycles=6, signal=signal)
        ticks: list[TimerSnapshot] = []
        done = MagicMock()
        exercise.begin(on_tick=ticks.append, on_complete=done)

        steps = _drain(scheduler)

        assert steps == 61
        assert len(ticks) == 61
        signal.assert_called_once()
        done.assert_called_once()
        assert exercise.state is TimerState.COMPLETED

    def test_alternates_inhale_exhale(self) -> None:
        scheduler = TickScheduler()
        exercise = BreathingExercise(scheduler, cycles=2)
        labels: list[str] = []
        exercise.begin(on_tick=lambda s: labels.append(s.phase.label))
        _drain(scheduler)
        # First tick ends the get-ready beat and moves to the first inhale.
        assert labels[0] == "Breathe In"
        assert labels[5] == "Breathe Out"
        assert labels[10] == "Breathe In"

    def test_stop_midway_no_signal(self) -> None:
        scheduler = TickScheduler()
        signal = MagicMock()
        exercise = BreathingExercise(scheduler, signal=signal)
        exercise.begin()
        for _ in range(10):
            scheduler.step()
        exercise.stop()
        assert scheduler.pending == 0
        assert exercise.state is TimerState.IDLE
        signal.assert_not_called()


class TestBodyScan:
    def test_parts_in_order(self) -> None:
        phases = body_scan_phases()
        assert [p.label for p in phases] == list(BODY_PARTS)
        assert all(p.seconds == 10 for p in phases)
        assert len(phases) == 6

    def test_completes_after_60_ticks(self) -> None:
        scheduler = TickScheduler()
        scan = BodyScanExercise(scheduler)
        done = MagicMock()
        scan.begin(on_complete=done)
        assert _drain(scheduler) == 60
        done.assert_called_once()

    def test_advances_every_ten(self) -> None:
        scheduler = TickScheduler()
        scan = BodyScanExercise(scheduler)
        indices: list[int] = []
        scan.begin(on_tick=lambda s: indices.append(s.phase_index))
        _drain(scheduler)
        assert indices[8] == 0
        assert indices[9] == 1
        assert indices[-1] == 5


class TestPhaseTimerLifecycle:
    def test_initial_state(self) -> None:
        timer = PhaseTimer(TickScheduler())
        assert timer.state is TimerState.IDLE
        assert timer.snapshot().phase is None

    def test_stop_when_idle_is_noop(self) -> None:
        timer = PhaseTimer(TickScheduler())
        timer.stop()
        timer.stop()
        assert timer.state is TimerState.IDLE

    def test_empty_phases_rejected(self) -> None:
        with pytest.raises(ValueError):
            PhaseTimer(TickScheduler()).start([])

    def test_restart_cancels_previous_handle(self) -> None:
        scheduler = TickScheduler()
        timer = PhaseTimer(scheduler)
        ticks: list[TimerSnapshot] = []
        timer.start(erp_phases(10), on_tick=ticks.append)
        scheduler.step()
        timer.start(erp_phases(10), on_tick=ticks.append)
        assert scheduler.pending == 1
        scheduler.step()
        assert [t.remaining for t in ticks] == [9, 9]

    def test_restart_from_final_tick_completes_old_run(self) -> None:
        scheduler = TickScheduler()
        timer = ErpTimer(scheduler)
        old_done = MagicMock()
        new_done = MagicMock()

        def restart_at_zero(snap: TimerSnapshot) -> None:
            if snap.remaining == 0:
                timer.start_exposure(5, on_complete=new_done)

        timer.start_exposure(2, on_tick=restart_at_zero, on_complete=old_done)
        scheduler.step()
        scheduler.step()

        old_done.assert_called_once()
        assert old_done.call_args.args[0].state is TimerState.COMPLETED
        new_done.assert_not_called()
        assert timer.state is TimerState.RUNNING
        assert timer.snapshot().remaining == 5

    def test_reset_restores_counters(self) -> None:
        scheduler = TickScheduler()
        timer = PhaseTimer(scheduler)
        timer.start(breathing_phases(2))
        for _ in range(7):
            scheduler.step()
        timer.reset()
        snap = timer.snapshot()
        assert snap.state is TimerState.IDLE
        assert snap.phase_index == 0
        assert snap.remaining == 1
        assert snap.elapsed == 0
        assert scheduler.pending == 0

    def test_stop_cancels_handle(self) -> None:
        scheduler = TickScheduler()
        handle = MagicMock()
        scheduler.schedule_interval = MagicMock(return_value=handle)  # type: ignore[method-assign]
        timer = PhaseTimer(scheduler)
        timer.start(erp_phases(60))
        timer.stop()
        handle.cancel.assert_called_once()

    def test_total_remaining(self) -> None:
        scheduler = TickScheduler()
        timer = PhaseTimer(scheduler)
        timer.start(breathing_phases(6))
        assert timer.snapshot().total_remaining == 61
        scheduler.step()
        assert timer.snapshot().total_remaining == 60


class TestFormatTime:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00"), (59, "00:59"), (60, "01:00"), (600, "10:00"), (-5, "00:00")],
    )
    def test_format(self, seconds: int, expected: str) -> None:
        assert format_time(seconds) == expected


class TestTerminalRunners:
    @patch("ocdian.timer.time.sleep")
    def test_run_erp_completes(self, mock_sleep) -> None:
        assert run_erp(60) is True
        assert mock_sleep.call_count == 60

    @patch("ocdian.timer.time.sleep", side_effect=KeyboardInterrupt)
    def test_run_erp_interrupted(self, mock_sleep) -> None:
        assert run_erp(60) is False

    @patch("ocdian.timer.time.sleep")
    def test_run_breathing(self, mock_sleep) -> None:
        assert run_breathing(cycles=1) is True
        assert mock_sleep.call_count == 11

    @patch("ocdian.timer.time.sleep")
    def test_run_body_scan(self, mock_sleep) -> None:
        assert run_body_scan() is True
        assert mock_sleep.call_count == 60
