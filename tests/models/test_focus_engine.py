"""Unit tests for the focus timer engine.

The shared fixtures plan a 70-minute jornada of
Focus 25, Short Break 5, Focus 25, Long Break 15.
"""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

import pytest

from taskit_cli.models.config_models import PomodoroConfig
from taskit_cli.models.focus.exceptions import (
    ConfigError,
    EmptyPlanError,
    InvalidTransitionError,
    PersistenceError,
)
from taskit_cli.models.focus.history import JornadaHistory
from taskit_cli.models.focus.scheduler import TickScheduler
from taskit_cli.models.focus.state import EngineState
from taskit_cli.models.focus.store import JsonFileStore, MemoryStore


class FailingStore(MemoryStore):
    """Store whose writes fail until ``healthy`` is set."""

    def __init__(self, value=None):
        super().__init__(value)
        self.healthy = False

    def set(self, value):
        if not self.healthy:
            raise PersistenceError("read-only filesystem")
        super().set(value)


def _active_snapshot(make_engine, **changes):
    other = make_engine(state_store=MemoryStore())
    other.set_task_ids(["A"])
    other.start()
    data = other.state.to_dict()
    data.update(changes)
    return data


def assert_consistent(engine):
    """Check the rules every loaded state must satisfy."""
    state = engine.state
    if state.phase == "setup":
        assert state.sessions == []
        assert state.current_session is None
        assert state.remaining_seconds == 0
        assert state.started_at is None
    else:
        assert state.sessions
        assert 0 <= state.remaining_seconds <= state.current_session.duration_seconds
        assert state.started_at is not None
    assert engine.scheduler.is_ticking is state.is_running


# ---------------------------------------------------------------------------
# Setup phase
# ---------------------------------------------------------------------------


class TestInitialState:
    def test_starts_in_setup(self, engine, config_store):
        assert engine.phase == "setup"
        assert engine.sessions == []
        assert engine.current_session is None
        assert engine.state.config == config_store.config
        assert engine.scheduler.is_ticking is False

    def test_preview_sessions(self, engine):
        engine.set_task_ids(["A", "B"])
        preview = engine.preview_sessions
        assert [(s.kind, s.task_id) for s in preview] == [
            ("focus", "A"),
            ("short_break", None),
            ("focus", "B"),
            ("long_break", None),
        ]
        assert engine.phase == "setup"

    def test_plan_summary(self, engine):
        summary = engine.plan_summary
        assert summary.focus_count == 2
        assert summary.total_focus_minutes == 50


class TestTaskIds:
    def test_set_task_ids_persists(self, engine, state_store):
        engine.set_task_ids(["A", "B"])
        assert engine.task_ids == ["A", "B"]
        assert state_store.get()["taskIds"] == ["A", "B"]

    def test_add_task_id_ignores_duplicates(self, engine, state_store):
        engine.add_task_id("A")
        engine.add_task_id("A")
        assert engine.task_ids == ["A"]
        assert state_store.writes == 1

    def test_remove_task_id(self, engine):
        engine.set_task_ids(["A", "B", "C"])
        engine.remove_task_id("B")
        assert engine.task_ids == ["A", "C"]

    def test_task_ids_returns_copy(self, engine):
        engine.set_task_ids(["A"])
        engine.task_ids.append("B")
        assert engine.task_ids == ["A"]


class TestUpdateConfiguration:
    def test_accepts_dict_with_field_names(self, engine, config_store):
        config = engine.update_configuration(
            {"total_duration_minutes": 120, "focus_minutes": 50}
        )
        assert config.total_duration_minutes == 120
        assert config.focus_minutes == 50
        assert config_store.config == config

    def test_accepts_camel_case_dict(self, engine, config_store):
        engine.update_configuration({"focusMinutes": 30})
        assert config_store.config.focus_minutes == 30

    def test_rejects_out_of_range_values(self, engine, config_store):
        before = config_store.config
        with pytest.raises(ConfigError):
            engine.update_configuration({"focus_minutes": 0})
        assert config_store.config == before

    def test_active_plan_is_not_affected(self, engine):
        engine.start()
        sessions = engine.sessions
        engine.update_configuration({"total_duration_minutes": 25})
        assert engine.sessions == sessions
        assert engine.state.config.total_duration_minutes == 70

    def test_config_store_failure_is_reported(self, engine, config_store):
        config_store.set = MagicMock(side_effect=PersistenceError("locked"))
        config = engine.update_configuration({"focus_minutes": 30})
        assert config.focus_minutes == 30
        assert isinstance(engine.last_persist_error, PersistenceError)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestStart:
    def test_start_freezes_plan(self, engine, state_store):
        engine.set_task_ids(["A"])
        engine.start()

        assert engine.phase == "active"
        assert len(engine.sessions) == 4
        assert engine.current_index == 0
        assert engine.remaining_seconds == 1500
        assert engine.is_paused is False
        assert engine.started_at == "2026-10-19T09:00:00+00:00"
        assert [s.task_id for s in engine.sessions] == ["A", None, "A", None]
        assert state_store.get()["phase"] == "active"

    def test_start_begins_ticking(self, engine):
        engine.start()
        assert engine.scheduler.is_ticking is True

    def test_start_twice_rejected(self, engine):
        engine.start()
        with pytest.raises(InvalidTransitionError):
            engine.start()

    def test_start_from_completed_rejected(self, engine):
        engine.start()
        for _ in range(4):
            engine.advance()
        with pytest.raises(InvalidTransitionError):
            engine.start()

    def test_empty_plan_stays_in_setup(self, engine, config_store, state_store):
        config_store.config = PomodoroConfig(total_duration_minutes=20, focus_minutes=25)
        with pytest.raises(EmptyPlanError):
            engine.start()
        assert engine.phase == "setup"
        assert state_store.writes == 0
        assert engine.scheduler.is_ticking is False

    def test_later_config_changes_do_not_replan(self, engine, config_store):
        engine.start()
        config_store.config = PomodoroConfig(total_duration_minutes=25)
        assert len(engine.sessions) == 4


class TestPauseResume:
    def test_pause_stops_ticking(self, engine):
        engine.start()
        engine.pause()
        assert engine.is_paused is True
        assert engine.scheduler.is_ticking is False

    def test_resume_restarts_ticking(self, engine):
        engine.start()
        engine.pause()
        engine.resume()
        assert engine.is_paused is False
        assert engine.scheduler.is_ticking is True

    def test_pause_when_paused_is_noop(self, engine, state_store):
        engine.start()
        engine.pause()
        writes = state_store.writes
        engine.pause()
        assert state_store.writes == writes
        assert engine.is_paused is True

    def test_resume_when_running_is_noop(self, engine, state_store):
        engine.start()
        writes = state_store.writes
        engine.resume()
        assert state_store.writes == writes

    @pytest.mark.parametrize("action", ["pause", "resume", "advance", "skip_forward", "skip_back"])
    def test_requires_active_phase(self, engine, action):
        with pytest.raises(InvalidTransitionError):
            getattr(engine, action)()


class TestTick:
    def test_tick_counts_down(self, engine):
        engine.start()
        engine.tick()
        assert engine.remaining_seconds == 1499

    def test_tick_ignored_when_paused(self, engine):
        engine.start()
        engine.pause()
        engine.tick()
        assert engine.remaining_seconds == 1500

    def test_tick_ignored_in_setup(self, engine, state_store):
        engine.tick()
        assert engine.phase == "setup"
        assert state_store.writes == 0

    def test_scheduler_drives_ticks(self, engine, clock):
        engine.start()
        clock.advance(3)
        assert engine.scheduler.run_pending() == 3
        assert engine.remaining_seconds == 1497

    def test_no_ticks_while_paused(self, engine, clock):
        engine.start()
        engine.pause()
        clock.advance(10)
        assert engine.scheduler.run_pending() == 0
        assert engine.remaining_seconds == 1500

    def test_ticking_out_a_session_matches_advance(self, make_engine, config_store, clock):
        ticked = make_engine(state_store=MemoryStore())
        advanced = make_engine(state_store=MemoryStore())
        ticked.start()
        advanced.start()

        for _ in range(1500):
            ticked.tick()
        advanced.advance()

        assert ticked.state == advanced.state
        assert ticked.current_index == 1
        assert ticked.remaining_seconds == 300

    def test_ticking_through_the_whole_jornada_completes(self, engine, clock):
        engine.start()
        clock.advance(70 * 60)
        assert engine.scheduler.run_pending() == 70 * 60
        assert engine.phase == "completed"
        assert engine.remaining_seconds == 0
        assert engine.scheduler.is_ticking is False

        clock.advance(10)
        assert engine.scheduler.run_pending() == 0


class TestAdvance:
    def test_advance_moves_to_next_session(self, engine):
        engine.start()
        engine.tick()
        engine.advance()
        assert engine.current_index == 1
        assert engine.remaining_seconds == 300
        assert engine.current_session.kind == "short_break"

    def test_advance_keeps_pause(self, engine):
        engine.start()
        engine.pause()
        engine.advance()
        assert engine.current_index == 1
        assert engine.is_paused is True
        assert engine.scheduler.is_ticking is False

    def test_advance_past_last_session_completes(self, engine, state_store):
        engine.start()
        for _ in range(4):
            engine.advance()
        assert engine.phase == "completed"
        assert engine.current_index == 3
        assert engine.remaining_seconds == 0
        assert engine.scheduler.is_ticking is False
        assert state_store.get()["phase"] == "completed"

    def test_skip_forward_is_advance(self, engine):
        engine.start()
        engine.skip_forward()
        assert engine.current_index == 1

    def test_completed_rejects_further_transitions(self, engine):
        engine.start()
        for _ in range(4):
            engine.advance()
        with pytest.raises(InvalidTransitionError):
            engine.advance()
        with pytest.raises(InvalidTransitionError):
            engine.pause()


class TestSkipBack:
    def test_skip_back_at_first_session_is_noop(self, engine, state_store):
        engine.start()
        engine.tick()
        writes = state_store.writes
        engine.skip_back()
        assert engine.current_index == 0
        assert engine.remaining_seconds == 1499
        assert state_store.writes == writes

    def test_skip_back_restarts_previous_session(self, engine):
        engine.start()
        engine.advance()
        engine.advance()
        engine.tick()
        engine.skip_back()
        assert engine.current_index == 1
        assert engine.remaining_seconds == 300

    def test_skip_back_keeps_ticking(self, engine):
        engine.start()
        engine.advance()
        engine.skip_back()
        assert engine.scheduler.is_ticking is True


class TestStop:
    def test_stop_returns_to_setup(self, engine, config_store):
        engine.set_task_ids(["A", "B"])
        engine.start()
        engine.advance()
        engine.stop()

        assert engine.phase == "setup"
        assert engine.sessions == []
        assert engine.current_index == 0
        assert engine.remaining_seconds == 0
        assert engine.started_at is None
        assert engine.task_ids == ["A", "B"]
        assert engine.state.config == config_store.config
        assert engine.scheduler.is_ticking is False

    def test_stop_keeps_config_snapshot(self, engine, config_store):
        engine.start()
        config_store.config = PomodoroConfig(focus_minutes=50)
        engine.stop()
        assert engine.state.config.focus_minutes == 25

    def test_stop_is_idempotent(self, engine):
        engine.start()
        engine.stop()
        first = engine.state
        engine.stop()
        assert engine.state == first

    def test_stop_from_setup(self, engine, state_store):
        engine.stop()
        assert engine.phase == "setup"
        assert state_store.get()["phase"] == "setup"

    def test_stop_from_completed(self, engine):
        engine.start()
        for _ in range(4):
            engine.advance()
        engine.stop()
        assert engine.phase == "setup"
        engine.start()
        assert engine.phase == "active"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestRestore:
    def test_resumes_persisted_state(self, make_engine, clock):
        first = make_engine()
        first.set_task_ids(["A"])
        first.start()
        for _ in range(10):
            first.tick()
        first.close()

        second = make_engine(scheduler=TickScheduler(clock=clock))
        assert second.phase == "active"
        assert second.remaining_seconds == 1490
        assert second.task_ids == ["A"]
        assert second.sessions == first.sessions
        assert second.scheduler.is_ticking is True

    def test_restored_pause_does_not_tick(self, make_engine, clock):
        first = make_engine()
        first.start()
        first.pause()

        second = make_engine(scheduler=TickScheduler(clock=clock))
        assert second.is_paused is True
        assert second.scheduler.is_ticking is False

    def test_invalid_snapshot_falls_back_to_defaults(self, make_engine, state_store, config_store):
        state_store.set({"phase": "warp"})
        engine = make_engine()
        assert engine.phase == "setup"
        assert engine.state.config == config_store.config

    def test_active_without_sessions_falls_back_to_setup(self, make_engine, state_store):
        state_store.set({"phase": "active", "sessions": [], "taskIds": ["A"]})
        engine = make_engine()
        assert engine.phase == "setup"
        assert engine.task_ids == ["A"]
        assert engine.scheduler.is_ticking is False

    def test_completed_state_is_restored(self, make_engine):
        first = make_engine()
        first.start()
        for _ in range(4):
            first.advance()
        assert make_engine().phase == "completed"

    def test_invalid_started_at_falls_back_to_setup(self, make_engine, state_store):
        state_store.set(_active_snapshot(make_engine, startedAt="yesterday"))
        engine = make_engine()
        assert engine.phase == "setup"
        assert_consistent(engine)

        engine.stop()
        assert engine.phase == "setup"

    def test_remaining_capped_at_session_length(self, make_engine, state_store):
        state_store.set(_active_snapshot(make_engine, timeRemainingSeconds=999_999))
        engine = make_engine()
        assert engine.remaining_seconds == 1500
        assert_consistent(engine)

    def test_setup_snapshot_with_sessions_restores_clean_setup(self, make_engine, state_store):
        state_store.set(_active_snapshot(make_engine, phase="setup", currentSessionIndex=2))
        engine = make_engine()
        assert engine.phase == "setup"
        assert engine.sessions == []
        assert engine.task_ids == ["A"]
        assert_consistent(engine)

    def test_completed_without_sessions_falls_back_to_setup(self, make_engine, state_store):
        state_store.set({"phase": "completed", "sessions": [], "taskIds": ["A"]})
        engine = make_engine()
        assert engine.phase == "setup"
        assert engine.task_ids == ["A"]
        assert_consistent(engine)


class TestPersistenceFailure:
    def test_engine_keeps_working_in_memory(self, make_engine):
        store = FailingStore()
        errors = []
        engine = make_engine(state_store=store, on_persist_error=errors.append)

        engine.start()
        engine.tick()

        assert engine.phase == "active"
        assert engine.remaining_seconds == 1499
        assert isinstance(engine.last_persist_error, PersistenceError)
        assert len(errors) == 2

    def test_error_cleared_after_successful_write(self, make_engine):
        store = FailingStore()
        engine = make_engine(state_store=store)
        engine.start()
        assert engine.last_persist_error is not None

        store.healthy = True
        engine.pause()
        assert engine.last_persist_error is None
        assert store.get()["isPaused"] is True


class TestFollowExternal:
    def test_adopts_state_written_elsewhere(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        other = make_engine(state_store=MemoryStore())
        other.start()
        other.pause()

        state_store.external_set(other.state.to_dict())

        assert engine.phase == "active"
        assert engine.is_paused is True
        assert engine.scheduler.is_ticking is False

    def test_external_running_state_starts_ticking(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        other = make_engine(state_store=MemoryStore())
        other.start()

        state_store.external_set(other.state.to_dict())
        assert engine.scheduler.is_ticking is True

        state_store.external_set(None)
        assert engine.phase == "setup"
        assert engine.scheduler.is_ticking is False

    def test_invalid_external_state_is_ignored(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        engine.start()
        state_store.external_set({"phase": "warp"})
        assert engine.phase == "active"

    def test_external_active_without_sessions_becomes_setup(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        engine.start()

        state_store.external_set({"phase": "active", "sessions": [], "taskIds": ["B"]})

        assert engine.phase == "setup"
        assert engine.current_session is None
        assert engine.task_ids == ["B"]
        assert_consistent(engine)

    def test_external_invalid_started_at_is_ignored(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        state_store.external_set(_active_snapshot(make_engine, startedAt="yesterday"))
        assert engine.phase == "setup"
        assert_consistent(engine)

    def test_external_overlong_remaining_is_capped(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        state_store.external_set(_active_snapshot(make_engine, timeRemainingSeconds=999_999))
        assert engine.remaining_seconds == 1500
        assert_consistent(engine)

    def test_close_detaches(self, make_engine, state_store):
        engine = make_engine(follow_external=True)
        engine.start()
        engine.close()
        assert engine.scheduler.is_ticking is False

        state_store.external_set(None)
        assert engine.phase == "active"

    def test_sync_external_polls_json_store(self, make_engine, tmp_path):
        path = tmp_path / "state.json"
        follower = make_engine(state_store=JsonFileStore(path), follow_external=True)
        follower.start()
        other = make_engine(state_store=JsonFileStore(path))
        other.pause()

        assert follower.is_paused is False
        assert follower.sync_external() is True
        assert follower.is_paused is True
        assert follower.scheduler.is_ticking is False
        assert follower.sync_external() is False

    def test_sync_external_without_polling_store(self, engine):
        assert engine.sync_external() is False

    def test_not_following_by_default(self, engine, state_store):
        engine.start()
        state_store.external_set(None)
        assert engine.phase == "active"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class TestHistoryRecording:
    @pytest.fixture()
    def history(self, tmp_path):
        return JornadaHistory(tmp_path / "history.db")

    def test_completed_jornada_is_recorded(self, make_engine, history):
        engine = make_engine(history=history)
        engine.set_task_ids(["A"])
        engine.start()
        for _ in range(4):
            engine.advance()

        [record] = history.get_recent()
        assert record.status == "completed"
        assert record.started_at == "2026-10-19T09:00:00+00:00"
        assert record.completed_at == "2026-10-19T09:00:00+00:00"
        assert record.total_minutes == 70
        assert record.focus_minutes == 50
        assert record.sessions_planned == 2
        assert record.sessions_completed == 2
        assert record.task_ids == ["A"]

    def test_stopped_jornada_counts_finished_focus_sessions(self, make_engine, history):
        engine = make_engine(history=history)
        engine.start()
        engine.advance()
        engine.advance()
        engine.stop()

        [record] = history.get_recent()
        assert record.status == "stopped"
        assert record.completed_at is None
        assert record.sessions_completed == 1
        assert record.focus_minutes == 25

    def test_stop_outside_active_records_nothing(self, make_engine, history):
        engine = make_engine(history=history)
        engine.stop()
        engine.start()
        for _ in range(4):
            engine.advance()
        engine.stop()
        assert [r.status for r in history.get_recent()] == ["completed"]

    def test_history_failure_does_not_break_engine(self, make_engine):
        history = MagicMock()
        history.log_jornada.side_effect = sqlite3.OperationalError("database is locked")
        engine = make_engine(history=history)
        engine.start()
        engine.stop()
        assert engine.phase == "setup"
        history.log_jornada.assert_called_once()

    def test_history_value_error_does_not_abort_stop(self, make_engine, state_store):
        history = MagicMock()
        history.log_jornada.side_effect = ValueError("Invalid isoformat string")
        engine = make_engine(history=history)
        engine.start()
        engine.advance()

        engine.stop()

        assert engine.phase == "setup"
        assert state_store.get()["phase"] == "setup"
        assert_consistent(engine)

    def test_history_failure_does_not_block_completion(self, make_engine, state_store, clock):
        history = MagicMock()
        history.log_jornada.side_effect = ValueError("Invalid isoformat string")
        engine = make_engine(history=history)
        engine.start()
        for _ in range(3):
            engine.advance()

        clock.advance(900)
        assert engine.scheduler.run_pending() == 900

        assert engine.phase == "completed"
        assert state_store.get()["phase"] == "completed"
        assert engine.scheduler.is_ticking is False
        history.log_jornada.assert_called_once()


class TestStateSnapshot:
    def test_state_is_a_copy(self, engine):
        engine.start()
        snapshot = engine.state
        snapshot.current_index = 3
        assert engine.current_index == 0

    def test_persisted_state_round_trips(self, engine, state_store):
        engine.start()
        assert EngineState.from_dict(state_store.get()) == engine.state
