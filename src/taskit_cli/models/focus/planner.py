"""Session planning for a focus jornada."""

from dataclasses import dataclass, replace
from typing import Literal, get_args

from .exceptions import ConfigError

SessionKind = Literal["focus", "short_break", "long_break"]

SESSION_KINDS: tuple[str, ...] = get_args(SessionKind)

SHORT_BREAK_LABEL = "Short Break"
LONG_BREAK_LABEL = "Long Break"

_DURATION_FIELDS = (
    "total_duration_minutes",
    "focus_minutes",
    "short_break_minutes",
    "long_break_minutes",
    "long_break_interval",
)


@dataclass(frozen=True)
class Session:
    """One interval of a planned jornada."""

    index: int
    kind: SessionKind
    duration_minutes: int
    task_id: str | None = None
    label: str = ""

    @property
    def is_focus(self) -> bool:
        return self.kind == "focus"

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    def with_task(self, task_id: str | None) -> "Session":
        """Return a copy assigned to ``task_id``."""
        return replace(self, task_id=task_id)

    def to_dict(self) -> dict:
        """Convert to the persisted dictionary shape."""
        return {
            "index": self.index,
            "type": self.kind,
            "durationMinutes": self.duration_minutes,
            "taskId": self.task_id,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        """Create from the persisted dictionary shape."""
        kind = data["type"]
        if kind not in SESSION_KINDS:
            raise ValueError(f"Unknown session type: {kind!r}")
        return cls(
            index=int(data["index"]),
            kind=kind,
            duration_minutes=int(data["durationMinutes"]),
            task_id=data.get("taskId"),
            label=str(data.get("label", "")),
        )


def validate_plan_config(config) -> None:
    """Reject configurations the planner cannot terminate on.

    Raises:
        ConfigError: If any duration field is missing or not a positive integer.
    """
    for field in _DURATION_FIELDS:
        value = getattr(config, field, None)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{field} must be an integer, got {value!r}")
        if value <= 0:
            raise ConfigError(f"{field} must be greater than 0, got {value}")


def generate_session_plan(config) -> list[Session]:
    """Pack the jornada into alternating focus and break sessions.

    A long break follows every ``long_break_interval``-th focus session and is
    added whenever it still fits in the jornada. A short break is only added
    when another focus session can follow it.

    The caller must run ``validate_plan_config`` first; a non-positive
    ``focus_minutes`` never terminates.
    """
    total = config.total_duration_minutes
    focus = config.focus_minutes
    short_break = config.short_break_minutes
    long_break = config.long_break_minutes

    sessions: list[Session] = []
    focus_count = 0
    time_used = 0

    while time_used + focus <= total:
        focus_count += 1
        sessions.append(
            Session(
                index=len(sessions),
                kind="focus",
                duration_minutes=focus,
                label=f"Focus #{focus_count}",
            )
        )
        time_used += focus

        if focus_count % config.long_break_interval == 0:
            if time_used + long_break <= total:
                sessions.append(
                    Session(
                        index=len(sessions),
                        kind="long_break",
                        duration_minutes=long_break,
                        label=LONG_BREAK_LABEL,
                    )
                )
                time_used += long_break
        elif (
            time_used + short_break <= total
            and time_used + short_break + focus <= total
        ):
            sessions.append(
                Session(
                    index=len(sessions),
                    kind="short_break",
                    duration_minutes=short_break,
                    label=SHORT_BREAK_LABEL,
                )
            )
            time_used += short_break

    return sessions
