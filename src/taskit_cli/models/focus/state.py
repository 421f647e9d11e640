"""Engine state snapshot and its persisted shape."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, get_args

from pydantic import ValidationError

from taskit_cli.models.config_models import PomodoroConfig

from .exceptions import StateError
from .planner import Session

Phase = Literal["setup", "active", "completed"]

PHASES: tuple[str, ...] = get_args(Phase)


@dataclass
class EngineState:
    """Everything the timer engine needs to resume after a restart."""

    phase: Phase = "setup"
    config: PomodoroConfig = field(default_factory=PomodoroConfig)
    sessions: list[Session] = field(default_factory=list)
    task_ids: list[str] = field(default_factory=list)
    current_index: int = 0
    remaining_seconds: int = 0
    is_paused: bool = False
    started_at: str | None = None  # ISO 8601

    @classmethod
    def default(
        cls, config: PomodoroConfig | None = None, task_ids: list[str] | None = None
    ) -> "EngineState":
        """Setup defaults, keeping an optional config snapshot and task list."""
        return cls(
            config=config if config is not None else PomodoroConfig(),
            task_ids=list(task_ids or []),
        )

    @property
    def current_session(self) -> Session | None:
        if 0 <= self.current_index < len(self.sessions):
            return self.sessions[self.current_index]
        return None

    @property
    def is_running(self) -> bool:
        """Whether the countdown should be ticking."""
        return self.phase == "active" and not self.is_paused

    def copy(self) -> "EngineState":
        return replace(self, sessions=list(self.sessions), task_ids=list(self.task_ids))

    def to_dict(self) -> dict:
        """Convert to the persisted camelCase dictionary."""
        return {
            "phase": self.phase,
            "config": self.config.to_dict(),
            "sessions": [session.to_dict() for session in self.sessions],
            "taskIds": list(self.task_ids),
            "currentSessionIndex": self.current_index,
            "timeRemainingSeconds": self.remaining_seconds,
            "isPaused": self.is_paused,
            "startedAt": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EngineState":
        """Create from the persisted dictionary.

        A setup snapshot comes back as setup defaults with its config and
        tasks, and the remaining time never exceeds the current session.

        Raises:
            StateError: If the payload is not a valid engine snapshot.
        """
        if not isinstance(data, dict):
            raise StateError(f"Expected a JSON object, got {type(data).__name__}")

        phase = data.get("phase", "setup")
        if phase not in PHASES:
            raise StateError(f"Unknown phase: {phase!r}")

        try:
            config = PomodoroConfig.model_validate(data.get("config") or {})
            sessions = [Session.from_dict(item) for item in data.get("sessions", [])]
            task_ids = [str(task_id) for task_id in data.get("taskIds", [])]
            current_index = int(data.get("currentSessionIndex", 0))
            remaining_seconds = int(data.get("timeRemainingSeconds", 0))
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            raise StateError(f"Invalid engine snapshot: {e}") from e

        if sessions and not 0 <= current_index < len(sessions):
            raise StateError(
                f"currentSessionIndex {current_index} outside plan of {len(sessions)}"
            )

        started_at = data.get("startedAt")
        if started_at is not None:
            try:
                datetime.fromisoformat(started_at)
            except (TypeError, ValueError) as e:
                raise StateError(f"Invalid startedAt: {started_at!r}") from e

        if phase == "setup":
            return cls.default(config=config, task_ids=task_ids)

        remaining_seconds = max(0, remaining_seconds)
        if phase == "completed":
            remaining_seconds = 0
        elif sessions:
            remaining_seconds = min(
                remaining_seconds, sessions[current_index].duration_seconds
            )

        return cls(
            phase=phase,
            config=config,
            sessions=sessions,
            task_ids=task_ids,
            current_index=current_index,
            remaining_seconds=remaining_seconds,
            is_paused=bool(data.get("isPaused", False)),
            started_at=started_at,
        )
