"""Tests for the insights aggregator."""

from __future__ import annotations

from ocdian.insights import average_mood, most_common_triggers, recent_mood_series
from ocdian.models import MoodRecord, Trigger


def _record(score: int = 3, *triggers: Trigger) -> MoodRecord:
    return MoodRecord(mood_score=score, triggers=triggers)


class TestMostCommonTriggers:
    def test_counts_sorted(self) -> None:
        history = [_record(2, Trigger.STRESS), _record(3, Trigger.STRESS), _record(4, Trigger.WORK)]
        assert most_common_triggers(history) == [(Trigger.STRESS, 2), (Trigger.WORK, 1)]

    def test_flattens_multiple_triggers(self) -> None:
        history = [
            _record(2, Trigger.WORK, Trigger.FAMILY),
            _record(3, Trigger.FAMILY),
        ]
        assert most_common_triggers(history) == [(Trigger.FAMILY, 2), (Trigger.WORK, 1)]

    def test_ties_keep_first_appearance(self) -> None:
        history = [_record(3, Trigger.HEALTH), _record(3, Trigger.SOCIAL)]
        assert most_common_triggers(history) == [(Trigger.HEALTH, 1), (Trigger.SOCIAL, 1)]

    def test_empty(self) -> None:
        assert most_common_triggers([]) == []
        assert most_common_triggers([_record(3)]) == []


class TestRecentMoodSeries:
    def test_last_seven_in_order(self) -> None:
        history = [_record((i % 5) + 1) for i in range(10)]
        recent = recent_mood_series(history)
        assert recent == history[3:]
        assert len(recent) == 7

    def test_fewer_than_n(self) -> None:
        history = [_record(1), _record(2)]
        assert recent_mood_series(history) == history

    def test_custom_n(self) -> None:
        history = [_record(s) for s in (1, 2, 3, 4)]
        assert [r.mood_score for r in recent_mood_series(history, n=2)] == [3, 4]

    def test_zero(self) -> None:
        assert recent_mood_series([_record(1)], n=0) == []


class TestAverageMood:
    def test_average(self) -> None:
        assert average_mood([_record(2), _record(4)]) == 3.0

    def test_empty(self) -> None:
        assert average_mood([]) is None
