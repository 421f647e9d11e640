"""Plan summaries used for previews and progress display."""

from collections.abc import Sequence
from dataclasses import dataclass

from .planner import Session


@dataclass(frozen=True)
class PlanSummary:
    """Counts and totals of a session plan."""

    focus_count: int = 0
    short_break_count: int = 0
    long_break_count: int = 0
    total_focus_minutes: int = 0

    @property
    def session_count(self) -> int:
        return self.focus_count + self.short_break_count + self.long_break_count

    def to_dict(self) -> dict:
        return {
            "focusCount": self.focus_count,
            "shortBreakCount": self.short_break_count,
            "longBreakCount": self.long_break_count,
            "totalFocusMinutes": self.total_focus_minutes,
        }


@dataclass(frozen=True)
class PlanProgress:
    """Where an active jornada stands."""

    current_focus_number: int
    total_focus_sessions: int
    remaining_minutes: int


def calculate_plan_summary(sessions: Sequence[Session]) -> PlanSummary:
    """Tally a plan by session kind."""
    focus_count = 0
    short_break_count = 0
    long_break_count = 0
    total_focus_minutes = 0

    for session in sessions:
        if session.kind == "focus":
            focus_count += 1
            total_focus_minutes += session.duration_minutes
        elif session.kind == "short_break":
            short_break_count += 1
        elif session.kind == "long_break":
            long_break_count += 1

    return PlanSummary(
        focus_count=focus_count,
        short_break_count=short_break_count,
        long_break_count=long_break_count,
        total_focus_minutes=total_focus_minutes,
    )


def calculate_plan_progress(
    sessions: Sequence[Session], current_index: int
) -> PlanProgress:
    """Compute the focus position and the minutes left from ``current_index``.

    The remaining minutes include the whole current session.
    """
    remaining_minutes = sum(s.duration_minutes for s in sessions[current_index:])
    current_focus_number = sum(1 for s in sessions[: current_index + 1] if s.is_focus)
    total_focus_sessions = sum(1 for s in sessions if s.is_focus)
    return PlanProgress(
        current_focus_number=current_focus_number,
        total_focus_sessions=total_focus_sessions,
        remaining_minutes=remaining_minutes,
    )
