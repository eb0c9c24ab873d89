"""Tests for the Pomodoro work/break cycle."""

import pytest

from tasktimers.models import POMODORO_BREAK_NAME, POMODORO_WORK_NAME, Task
from tasktimers.timer.engine import TimerState

from helpers import SignalCollector


@pytest.fixture
def pomodoro_engine(engine):
    engine.update_pomodoro(work=2, break_time=1, cycles=2)
    return engine


def _phase(engine):
    if not engine.is_running:
        return ("idle", engine.current_cycle)
    return ("break" if engine.is_on_break else "work", engine.current_cycle)


class TestSequence:

    def test_start_pomodoro(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        assert eng.state == TimerState.RUNNING
        assert eng.is_pomodoro_active is True
        assert eng.is_on_break is False
        assert eng.current_cycle == 1
        assert eng.current_task.name == POMODORO_WORK_NAME
        assert eng.total_duration == 2

    def test_full_sequence_via_complete(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        phases = [_phase(eng)]
        for _ in range(4):
            eng.complete()
            phases.append(_phase(eng))
        assert phases == [
            ("work", 1),
            ("break", 1),
            ("work", 2),
            ("break", 2),
            ("idle", 0),
        ]
        assert eng.is_pomodoro_active is False

    def test_full_sequence_via_clock(self, pomodoro_engine, clock):
        eng = pomodoro_engine
        eng.start_pomodoro()
        phases = [_phase(eng)]
        while eng.is_running:
            clock.advance(eng.remaining)
            eng.tick()
            phases.append(_phase(eng))
        assert phases == [
            ("work", 1),
            ("break", 1),
            ("work", 2),
            ("break", 2),
            ("idle", 0),
        ]

    def test_break_segment_uses_break_duration(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.complete()
        assert eng.current_task.name == POMODORO_BREAK_NAME
        assert eng.total_duration == 1
        assert eng.display == 1

    def test_feedback_only_at_the_end(self, pomodoro_engine, feedback, notifier):
        eng = pomodoro_engine
        eng.start_pomodoro()
        for _ in range(3):
            eng.complete()
        assert feedback.completions == []
        eng.complete()
        assert len(feedback.completions) == 1
        assert notifier.completed == [POMODORO_BREAK_NAME]

    def test_each_segment_schedules_notification(self, pomodoro_engine, notifier):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.complete()
        names = [name for name, _ in notifier.scheduled]
        assert names == [POMODORO_WORK_NAME, POMODORO_BREAK_NAME]

    def test_completed_signal_reports_cycles(self, pomodoro_engine):
        c = SignalCollector()
        pomodoro_engine.session_completed.connect(c)
        pomodoro_engine.start_pomodoro()
        for _ in range(4):
            pomodoro_engine.complete()
        assert len(c) == 1
        assert c.last["pomodoro_cycles"] == 2

    def test_pomodoro_changed_signal(self, pomodoro_engine):
        c = SignalCollector()
        pomodoro_engine.pomodoro_changed.connect(c)
        pomodoro_engine.start_pomodoro()
        assert c.last.active is True
        assert c.last.cycle == 1
        pomodoro_engine.complete()
        assert c.last.on_break is True


class TestNoFinalBreak:

    def test_ends_after_last_work_segment(self, engine):
        engine.update_pomodoro(work=2, break_time=1, cycles=2,
                               break_after_final_cycle=False)
        engine.start_pomodoro()
        phases = [_phase(engine)]
        for _ in range(3):
            engine.complete()
            phases.append(_phase(engine))
        assert phases == [("work", 1), ("break", 1), ("work", 2), ("idle", 0)]

    def test_single_cycle(self, engine):
        engine.update_pomodoro(work=2, break_time=1, cycles=1,
                               break_after_final_cycle=False)
        engine.start_pomodoro()
        engine.complete()
        assert engine.state == TimerState.IDLE


class TestOverlayReset:

    def test_start_task_clears_overlay(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.complete()
        eng.start(Task("Read", 60))
        assert eng.is_pomodoro_active is False
        assert eng.is_on_break is False
        assert eng.current_cycle == 0
        eng.complete()
        assert eng.state == TimerState.IDLE

    def test_cancel_clears_overlay(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.cancel()
        assert eng.is_pomodoro_active is False
        assert eng.current_cycle == 0

    def test_pause_and_resume_keep_overlay(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.complete()
        eng.pause()
        eng.resume()
        assert eng.is_on_break is True
        assert eng.current_cycle == 1

    def test_new_settings_apply_to_next_segment(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start_pomodoro()
        eng.update_pomodoro(work=2, break_time=7, cycles=2)
        assert eng.total_duration == 2
        eng.complete()
        assert eng.total_duration == 7

    def test_last_task_not_overwritten_by_segments(self, pomodoro_engine):
        eng = pomodoro_engine
        eng.start(eng.catalog[0])
        eng.start_pomodoro()
        eng.complete()
        assert eng.last_used_task_name() == eng.catalog[0].name
