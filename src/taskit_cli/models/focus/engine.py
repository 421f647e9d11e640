"""Resumable focus timer engine.

The engine moves through three phases: ``setup`` while the jornada is being
configured, ``active`` while the countdown runs, and ``completed`` once the
last session is exhausted. Only ``stop`` leaves ``completed``.

Every transition writes the full snapshot to the state store, which is what a
restarted process resumes from. Ticking is owned by a ``TickScheduler`` and
runs only while the phase is active and the timer is not paused.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError

from taskit_cli.models.config_models import PomodoroConfig

from .distribution import distribute_tasks_to_sessions
from .exceptions import (
    ConfigError,
    EmptyPlanError,
    InvalidTransitionError,
    PersistenceError,
    StateError,
)
from .history import JornadaRecord, JornadaStatus
from .planner import Session, generate_session_plan, validate_plan_config
from .scheduler import TickScheduler
from .state import EngineState, Phase
from .store import StateStore
from .summary import (
    PlanProgress,
    PlanSummary,
    calculate_plan_progress,
    calculate_plan_summary,
)

if TYPE_CHECKING:
    from .history import JornadaHistory

logger = logging.getLogger(__name__)


class ConfigStore(Protocol):
    """Where the user's Pomodoro configuration lives."""

    def get(self) -> PomodoroConfig: ...

    def set(self, config: PomodoroConfig) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TimerEngine:
    """State machine driving a planned jornada."""

    def __init__(
        self,
        state_store: StateStore,
        config_store: ConfigStore,
        scheduler: TickScheduler | None = None,
        history: JornadaHistory | None = None,
        now: Callable[[], datetime] | None = None,
        follow_external: bool = False,
        on_persist_error: Callable[[PersistenceError], None] | None = None,
    ):
        self._state_store = state_store
        self._config_store = config_store
        self.scheduler = scheduler or TickScheduler()
        self.history = history
        self._now = now or _utc_now
        self.on_persist_error = on_persist_error
        self.last_persist_error: PersistenceError | None = None

        self._state = self._restore()
        self._unsubscribe: Callable[[], None] | None = None
        if follow_external:
            self._unsubscribe = state_store.subscribe(self._on_external_change)
        self._sync_ticking()

    # --- Read accessors ---

    @property
    def state(self) -> EngineState:
        return self._state.copy()

    @property
    def config(self) -> PomodoroConfig:
        return self._config_store.get()

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def sessions(self) -> list[Session]:
        return list(self._state.sessions)

    @property
    def task_ids(self) -> list[str]:
        return list(self._state.task_ids)

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def current_session(self) -> Session | None:
        return self._state.current_session

    @property
    def remaining_seconds(self) -> int:
        return self._state.remaining_seconds

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    @property
    def started_at(self) -> str | None:
        return self._state.started_at

    @property
    def preview_sessions(self) -> list[Session]:
        """The plan ``start`` would freeze with the current config and tasks."""
        config = self.config
        validate_plan_config(config)
        return distribute_tasks_to_sessions(
            generate_session_plan(config), self._state.task_ids
        )

    @property
    def plan_summary(self) -> PlanSummary:
        config = self.config
        validate_plan_config(config)
        return calculate_plan_summary(generate_session_plan(config))

    @property
    def plan_progress(self) -> PlanProgress:
        return calculate_plan_progress(self._state.sessions, self._state.current_index)

    # --- Config and setup actions ---

    def update_configuration(self, config: PomodoroConfig | dict[str, Any]) -> PomodoroConfig:
        """Replace the stored configuration. An active plan is not affected."""
        if not isinstance(config, PomodoroConfig):
            try:
                config = PomodoroConfig.model_validate(config)
            except ValidationError as e:
                raise ConfigError(str(e)) from e
        validate_plan_config(config)

        try:
            self._config_store.set(config)
        except PersistenceError as e:
            self._report_persist_error(e)
        logger.info("pomodoro configuration updated: %s", config.to_dict())
        return config

    def set_task_ids(self, task_ids: Iterable[str]) -> None:
        self._state.task_ids = list(task_ids)
        self._persist()

    def add_task_id(self, task_id: str) -> None:
        if task_id in self._state.task_ids:
            return
        self._state.task_ids.append(task_id)
        self._persist()

    def remove_task_id(self, task_id: str) -> None:
        self._state.task_ids = [t for t in self._state.task_ids if t != task_id]
        self._persist()

    # --- Session actions ---

    def start(self) -> None:
        """Plan the jornada from the current config and start the countdown.

        Raises:
            InvalidTransitionError: If a jornada is already active or completed.
            ConfigError: If the configuration cannot be planned.
            EmptyPlanError: If not even one focus session fits.
        """
        if self._state.phase != "setup":
            raise InvalidTransitionError(
                f"Can only start a jornada from setup (current phase: {self._state.phase})"
            )

        config = self.config
        validate_plan_config(config)
        sessions = distribute_tasks_to_sessions(
            generate_session_plan(config), self._state.task_ids
        )
        if not sessions:
            raise EmptyPlanError(
                f"A {config.total_duration_minutes}-minute jornada cannot fit "
                f"a {config.focus_minutes}-minute focus session"
            )

        self._state = EngineState(
            phase="active",
            config=config,
            sessions=sessions,
            task_ids=list(self._state.task_ids),
            current_index=0,
            remaining_seconds=sessions[0].duration_seconds,
            is_paused=False,
            started_at=self._now().isoformat(timespec="seconds"),
        )
        logger.info(
            "jornada started: %d sessions, %d tasks",
            len(sessions),
            len(self._state.task_ids),
        )
        self._commit()

    def pause(self) -> None:
        self._require_active("pause")
        if self._state.is_paused:
            return
        self._state.is_paused = True
        self._commit()

    def resume(self) -> None:
        self._require_active("resume")
        if not self._state.is_paused:
            return
        self._state.is_paused = False
        self._commit()

    def advance(self) -> None:
        """Move to the next session, completing the jornada after the last one."""
        self._require_active("advance")
        self._advance()
        self._commit()

    def skip_forward(self) -> None:
        self.advance()

    def skip_back(self) -> None:
        """Restart the previous session from its full duration."""
        self._require_active("skip back")
        if self._state.current_index == 0:
            return
        self._state.current_index -= 1
        self._state.remaining_seconds = self._state.sessions[
            self._state.current_index
        ].duration_seconds
        self._commit()

    def stop(self) -> None:
        """Abandon the jornada and return to setup. Safe to call in any phase."""
        if self._state.phase == "active":
            self._record_jornada("stopped")
            logger.info("jornada stopped at session %d", self._state.current_index)
        self._state = EngineState.default(
            config=self._state.config, task_ids=self._state.task_ids
        )
        self._commit()

    def tick(self) -> None:
        """One second of countdown. Ignored unless active and running."""
        if not self._state.is_running:
            return
        if self._state.remaining_seconds <= 1:
            self._advance()
        else:
            self._state.remaining_seconds -= 1
        self._commit()

    def sync_external(self) -> bool:
        """Check the state store for writes made by other processes.

        Only stores that can poll (``JsonFileStore``) report changes, and they
        are adopted only when the engine follows external writes.
        """
        poll = getattr(self._state_store, "poll", None)
        if poll is None:
            return False
        return poll()

    def close(self) -> None:
        """Stop ticking and detach from the state store."""
        self.scheduler.cancel_ticking()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- Internals ---

    def _require_active(self, action: str) -> None:
        if self._state.phase != "active":
            raise InvalidTransitionError(
                f"Can only {action} an active jornada (current phase: {self._state.phase})"
            )

    def _advance(self) -> None:
        state = self._state
        next_index = state.current_index + 1
        if next_index < len(state.sessions):
            state.current_index = next_index
            state.remaining_seconds = state.sessions[next_index].duration_seconds
            return

        state.remaining_seconds = 0
        state.phase = "completed"
        logger.info("jornada completed: %d sessions", len(state.sessions))
        self._record_jornada("completed")

    def _commit(self) -> None:
        self._persist()
        self._sync_ticking()

    def _persist(self) -> None:
        try:
            self._state_store.set(self._state.to_dict())
        except PersistenceError as e:
            self._report_persist_error(e)
        else:
            self.last_persist_error = None

    def _report_persist_error(self, error: PersistenceError) -> None:
        logger.warning("focus state not persisted, continuing in memory: %s", error)
        self.last_persist_error = error
        if self.on_persist_error is not None:
            self.on_persist_error(error)

    def _sync_ticking(self) -> None:
        if self._state.is_running:
            if not self.scheduler.is_ticking:
                self.scheduler.start_ticking(self.tick)
        elif self.scheduler.is_ticking:
            self.scheduler.cancel_ticking()

    def _default_state(self) -> EngineState:
        return EngineState.default(config=self._config_store.get())

    def _state_from_snapshot(self, raw: Any) -> EngineState | None:
        """Parse a stored snapshot, or None when it is not a valid one.

        An active or completed snapshot without sessions becomes setup
        defaults keeping its config and tasks.
        """
        try:
            state = EngineState.from_dict(raw)
        except StateError as e:
            logger.warning("invalid focus state: %s", e)
            return None
        if state.phase != "setup" and not state.sessions:
            logger.warning("focus state in phase %s has no sessions", state.phase)
            return EngineState.default(config=state.config, task_ids=state.task_ids)
        return state

    def _restore(self) -> EngineState:
        raw = self._state_store.get()
        if raw is None:
            return self._default_state()
        state = self._state_from_snapshot(raw)
        if state is None:
            logger.warning("discarding stored focus state")
            return self._default_state()
        return state

    def _on_external_change(self, value: Any) -> None:
        if value is None:
            self._state = self._default_state()
        else:
            state = self._state_from_snapshot(value)
            if state is None:
                logger.warning("ignoring focus state written elsewhere")
                return
            self._state = state
        logger.debug("adopted focus state written elsewhere: phase=%s", self._state.phase)
        self._sync_ticking()

    def _record_jornada(self, status: JornadaStatus) -> None:
        state = self._state
        if self.history is None or state.started_at is None:
            return

        if status == "completed":
            done = [s for s in state.sessions if s.is_focus]
            completed_at = self._now().isoformat(timespec="seconds")
        else:
            done = [s for s in state.sessions[: state.current_index] if s.is_focus]
            completed_at = None

        record = JornadaRecord(
            started_at=state.started_at,
            completed_at=completed_at,
            total_minutes=state.config.total_duration_minutes,
            focus_minutes=sum(s.duration_minutes for s in done),
            sessions_planned=sum(1 for s in state.sessions if s.is_focus),
            sessions_completed=len(done),
            task_ids=list(state.task_ids),
            status=status,
        )
        try:
            self.history.log_jornada(record)
        except (sqlite3.Error, OSError, ValueError) as e:
            logger.warning("jornada history not recorded: %s", e)
